# schemas/invitation.py
"""
Pydantic schemas for invitation and grant API request/response validation.
"""
from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from models.property_grant import GrantRole, GrantStatus


class InvitationCreate(BaseModel):
     """Invite someone by user id or by e-mail (exactly one)."""
     role: GrantRole = Field(..., description="Role granted on acceptance")
     invitee_user_id: Optional[UUID] = Field(None, description="Invitee's user id")
     invitee_email: Optional[str] = Field(
          None,
          max_length=255,
          pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$",
          description="Invitee's e-mail address",
     )

     @model_validator(mode="after")
     def _one_invitee(self):
          if (self.invitee_user_id is None) == (self.invitee_email is None):
               raise ValueError("Provide exactly one of invitee_user_id or invitee_email")
          return self

     model_config = ConfigDict(
          json_schema_extra={
               "example": {"role": "VIEWER", "invitee_email": "viewer@example.com"}
          }
     )


class GrantResponse(BaseModel):
     """A grant (or invitation, when PENDING)."""
     id: UUID
     property_id: UUID
     user_id: Optional[UUID] = None
     invitee_email: Optional[str] = None
     role: GrantRole
     status: GrantStatus
     invited_by: Optional[UUID] = None
     invited_at: Optional[datetime] = None
     expires_at: Optional[datetime] = None
     accepted_at: Optional[datetime] = None
     revoked_at: Optional[datetime] = None

     model_config = ConfigDict(from_attributes=True)


class InvitationCreatedResponse(BaseModel):
     invitation_id: UUID
     expires_at: Optional[datetime] = None


class AcceptInvitationResponse(BaseModel):
     grant_id: UUID
     property_id: UUID
     role: GrantRole
