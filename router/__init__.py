from .misc import router as misc_router
from .traffic import router as traffic_router

__all__ = ["misc_router", "traffic_router"]
