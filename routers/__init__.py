# routers/__init__.py
from .access import router as access_router
from .invitations import router as invitations_router
from .properties import router as properties_router
from .units import router as units_router

__all__ = [
     "access_router",
     "invitations_router",
     "properties_router",
     "units_router",
]
