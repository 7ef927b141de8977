"""
Run the PinBank API with uvicorn: python -m pinbank
"""

import uvicorn

from pinbank.core.config import settings


def run_server(host: str = "0.0.0.0", port: int = 8000, debug: bool = False):
    """Run the FastAPI server"""
    uvicorn.run(
        "pinbank.main:app",
        host=host,
        port=port,
        reload=debug,
        log_level=settings.LOG_LEVEL.lower()
    )


if __name__ == "__main__":
    run_server(host=settings.HOST, port=settings.PORT)
