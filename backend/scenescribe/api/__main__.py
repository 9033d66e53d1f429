"""API server entry point for python -m scenescribe.api"""
import uvicorn
from scenescribe.config import settings

if __name__ == "__main__":
    uvicorn.run(
        "scenescribe.api.app:app",
        host=settings.server.host,
        port=settings.server.port,
        reload=False,
    )
