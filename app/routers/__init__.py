# Routers package
from . import appointments_router
from . import slots_router

__all__ = [
    "appointments_router",
    "slots_router",
]
