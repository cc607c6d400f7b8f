from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from app.services.advisor import AdvisorService, get_advisor_service

router = APIRouter()

@router.get("/health")
async def health_check(service: AdvisorService = Depends(get_advisor_service)):
    """Liveness plus which provider this process talks to"""

    config = service.provider_config
    timestamp = datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")

    return {
        "status": "ok",
        "timestamp": timestamp,
        "provider": config.label if config else None,
        "configuration": config.presence_flags() if config else {},
    }
