# models/__init__.py
from .base import Base
from .property import Property
from .property_unit import PropertyUnit
from .property_grant import PropertyGrant, GrantRole, GrantStatus

__all__ = [
     "Base",
     "Property",
     "PropertyUnit",
     "PropertyGrant",
     "GrantRole",
     "GrantStatus",
]
