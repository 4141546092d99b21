# schemas/access.py
"""
Pydantic schemas for the access-check API.
"""
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from models.property_grant import GrantRole
from services.errors import DenyReason
from services.role_registry import Operation


class PropertyAccessResponse(BaseModel):
     """One property the caller can reach, with the effective role."""
     property_id: UUID
     role: GrantRole
     operations: List[Operation] = []

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "property_id": "6f1c3c1e-0a51-4f0e-9a2e-2f3b1c9d7e11",
                    "role": "VIEWER",
                    "operations": ["VIEW_PROPERTY", "VIEW_REPORTS"],
               }
          }
     )


class AuthorizationResponse(BaseModel):
     """Result of an authorize() check."""
     allow: bool
     reason: Optional[DenyReason] = None
     role: Optional[GrantRole] = None

     model_config = ConfigDict(
          json_schema_extra={
               "example": {"allow": False, "reason": "INSUFFICIENT_ROLE", "role": "VIEWER"}
          }
     )
