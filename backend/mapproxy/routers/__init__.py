from .debug import router as debug_router
from .proxy import router as proxy_router

__all__ = [
    "debug_router",
    "proxy_router",
]
