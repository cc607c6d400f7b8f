import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import argparse
import logging

from .core.config import settings
from .api.chat import router as chat_router
from .api.health import router as health_router
from .services.advisor import get_advisor_service

# Configure logging
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format=settings.LOG_FORMAT
)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    # Startup: provider choice is fixed for the life of the process
    logger.info(f"Starting up {settings.APP_NAME}...")
    service = get_advisor_service()
    provider = service.provider_config.label if service.provider_config else "unknown"
    logger.info(f"Using {provider} provider")

    yield

    # Shutdown
    logger.info(f"Shutting down {settings.APP_NAME}...")
    await service.provider.aclose()

# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    description="Conversational advisor for Azure vs Databricks platform decisions",
    version=settings.APP_VERSION,
    lifespan=lifespan
)

# Add CORS middleware for the browser client
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(chat_router, prefix="/api", tags=["Chat"])
app.include_router(health_router, prefix="/api", tags=["Health"])

# Root route
@app.get("/", tags=["Root"])
async def root():
    return {
        "message": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "docs": "/docs"
    }

if __name__ == "__main__":
    # Parse command line arguments
    parser = argparse.ArgumentParser(description=settings.APP_NAME)
    parser.add_argument("--port", type=int, default=settings.PORT, help="Port to run the server on")
    parser.add_argument("--host", type=str, default="0.0.0.0", help="Host to run the server on")

    args = parser.parse_args()

    # Run the application
    logger.info(f"Starting {settings.APP_NAME} on {args.host}:{args.port}")
    logger.info(f"API ready at http://localhost:{args.port}/api/chat")
    uvicorn.run("app.main:app", host=args.host, port=args.port, reload=settings.DEBUG)
