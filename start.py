#!/usr/bin/env python3
"""
Start script - honours the PORT environment variable used by hosting platforms
"""
import os

from core.config import settings

if __name__ == "__main__":
    port = int(os.getenv("PORT", settings.app_port))

    # Import and run uvicorn programmatically
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.app_host,
        port=port,
        log_level=settings.log_level.lower()
    )
