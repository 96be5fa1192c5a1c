"""Aggregate router exports."""
from .negotiate import router as negotiate_router
from .realtime import router as realtime_router
from .system import router as system_router

__all__ = [
    "negotiate_router",
    "realtime_router",
    "system_router",
]
