#!/usr/bin/env python3
import uvicorn

from tokengate.core.config import settings

if __name__ == "__main__":
    uvicorn.run(
        "tokengate.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.is_development,
        log_level=settings.log_level.lower()
    )
