# schemas/__init__.py
from .access import PropertyAccessResponse, AuthorizationResponse
from .invitation import (
     InvitationCreate,
     GrantResponse,
     InvitationCreatedResponse,
     AcceptInvitationResponse,
)
from .property import (
     PropertyCreate,
     PropertyResponse,
     PropertyListResponse,
     UnitCreate,
     UnitResponse,
)

__all__ = [
     "PropertyAccessResponse",
     "AuthorizationResponse",
     "InvitationCreate",
     "GrantResponse",
     "InvitationCreatedResponse",
     "AcceptInvitationResponse",
     "PropertyCreate",
     "PropertyResponse",
     "PropertyListResponse",
     "UnitCreate",
     "UnitResponse",
]
