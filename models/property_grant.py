# models/property_grant.py
"""
PropertyGrant model - the grant store (property_users table).

A grant states that a user holds a role on a property. An invitation is
the PENDING state of a grant: both share the same row and id. Rows in a
terminal state (REVOKED, EXPIRED) are never brought back to life; a new
invitation always inserts a new row.
"""
import enum
import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import Column, String, DateTime, ForeignKey, Enum, Index, Uuid, func, text
from sqlalchemy.orm import relationship
from .base import Base


class GrantRole(str, enum.Enum):
     """Closed enumeration of property-scoped roles."""
     OWNER = "OWNER"
     PROPERTY_MANAGER = "PROPERTY_MANAGER"
     LEASING_AGENT = "LEASING_AGENT"
     MAINTENANCE_COORDINATOR = "MAINTENANCE_COORDINATOR"
     VIEWER = "VIEWER"


class GrantStatus(str, enum.Enum):
     """Lifecycle status of a grant."""
     PENDING = "PENDING"
     ACTIVE = "ACTIVE"
     REVOKED = "REVOKED"
     EXPIRED = "EXPIRED"


LIVE_STATUSES = (GrantStatus.PENDING, GrantStatus.ACTIVE)
TERMINAL_STATUSES = (GrantStatus.REVOKED, GrantStatus.EXPIRED)

# Filter shared by every dialect that supports partial/filtered indexes
_LIVE_FILTER = text("status IN ('PENDING', 'ACTIVE') AND user_id IS NOT NULL")
_PENDING_FILTER = text("status = 'PENDING' AND invitee_email IS NOT NULL")


class PropertyGrant(Base):
     """
     One (user, property, role, status) tuple.

     user_id is NULL only while an e-mail addressed invitation is pending;
     acceptance binds it to the accepting identity.
     """
     __tablename__ = "property_users"
     __table_args__ = (
          # At most one live grant per (user, property)
          Index(
               "uq_property_users_live_user",
               "user_id",
               "property_id",
               unique=True,
               postgresql_where=_LIVE_FILTER,
               sqlite_where=_LIVE_FILTER,
               mssql_where=_LIVE_FILTER,
          ),
          # At most one pending invitation per (email, property)
          Index(
               "uq_property_users_pending_email",
               "invitee_email",
               "property_id",
               unique=True,
               postgresql_where=_PENDING_FILTER,
               sqlite_where=_PENDING_FILTER,
               mssql_where=_PENDING_FILTER,
          ),
     )

     id = Column(Uuid, primary_key=True, default=uuid.uuid4)
     property_id = Column(
          Uuid,
          ForeignKey("properties.id", ondelete="CASCADE"),
          nullable=False,
          index=True
     )
     user_id = Column(Uuid, nullable=True, index=True)
     invitee_email = Column(String(255), nullable=True, index=True)

     role = Column(
          Enum(GrantRole, name="grant_role", create_constraint=True),
          nullable=False
     )
     status = Column(
          Enum(GrantStatus, name="grant_status", create_constraint=True),
          default=GrantStatus.PENDING,
          nullable=False,
          index=True
     )

     # Invitation metadata
     invited_by = Column(Uuid, nullable=True)  # NULL for the creation self-grant
     invited_at = Column(DateTime, server_default=func.now(), nullable=False)
     expires_at = Column(DateTime, nullable=True)
     accepted_at = Column(DateTime, nullable=True)
     revoked_at = Column(DateTime, nullable=True)
     revoked_by = Column(Uuid, nullable=True)

     # Timestamps
     updated_at = Column(DateTime, onupdate=func.now(), nullable=True)

     # Relationships
     property = relationship("Property", back_populates="grants")

     def __repr__(self):
          return (
               f"<PropertyGrant(id={self.id}, property_id={self.property_id}, "
               f"user_id={self.user_id}, role='{self.role.value}', status='{self.status.value}')>"
          )

     def is_expired(self, now: datetime) -> bool:
          """A pending invitation past its expiry, whether or not the sweep has marked it."""
          if self.status == GrantStatus.EXPIRED:
               return True
          return (
               self.status == GrantStatus.PENDING
               and self.expires_at is not None
               and self.expires_at <= now
          )

     def effective_status(self, now: datetime) -> GrantStatus:
          """Status as every reader must see it, with lazy expiry applied."""
          if self.is_expired(now):
               return GrantStatus.EXPIRED
          return self.status

     def is_addressed_to(self, user_id: uuid.UUID, email: Optional[str]) -> bool:
          """Whether the given identity is the invitee of this grant."""
          if self.user_id is not None:
               return self.user_id == user_id
          return bool(email) and self.invitee_email == email.strip().lower()
