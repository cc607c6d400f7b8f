#!/usr/bin/env python3
"""
Azure vs Databricks Advisor
Simple startup script for the API server
"""

import uvicorn

from app.core.config import settings

if __name__ == "__main__":
    print(f"Starting {settings.APP_NAME}...")
    print(f"API ready at http://localhost:{settings.PORT}/api/chat")
    print(f"Health Check: http://localhost:{settings.PORT}/api/health")
    uvicorn.run("app.main:app", host="0.0.0.0", port=settings.PORT, reload=settings.DEBUG)
