"""Health check endpoint."""

from fastapi import APIRouter

from asset_pipeline import __version__

router = APIRouter()


@router.get("/health")
async def health_check():
    """
    Health check endpoint.

    Returns:
        Health status and version information
    """
    return {
        "status": "healthy",
        "version": __version__,
    }


# Note: /metrics endpoint is mounted directly in main.py using prometheus ASGI app
