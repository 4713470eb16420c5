"""API module."""
from .routes import router, storage_router

__all__ = ["router", "storage_router"]
