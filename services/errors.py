# services/errors.py
"""
Error and reason-code taxonomy for the access engine.

Authorization denials are ordinary outcomes: the evaluator and enforcer
return them as values, and only the workflow (and PolicyEnforcer.require)
raise AccessDenied so a route can abort its transaction. Malformed input
raises ValueError subclasses, which callers must not confuse with a denial.
"""
import enum
from typing import Optional


class DenyReason(str, enum.Enum):
     """Machine-readable reason attached to every denial."""
     NOT_A_MEMBER = "NOT_A_MEMBER"
     INSUFFICIENT_ROLE = "INSUFFICIENT_ROLE"
     PROPERTY_DISABLED = "PROPERTY_DISABLED"
     DUPLICATE_GRANT = "DUPLICATE_GRANT"
     INVITATION_EXPIRED = "INVITATION_EXPIRED"
     NOT_INVITEE = "NOT_INVITEE"
     NOT_FOUND = "NOT_FOUND"
     ALREADY_ACCEPTED = "ALREADY_ACCEPTED"
     INVALID_TRANSITION = "INVALID_TRANSITION"
     LAST_OWNER = "LAST_OWNER"


class AccessDenied(Exception):
     """An operation was refused; nothing was written."""

     def __init__(self, reason: DenyReason, detail: Optional[str] = None):
          self.reason = reason
          self.detail = detail or reason.value
          super().__init__(f"{reason.value}: {self.detail}")


class UnknownRoleError(ValueError):
     """A role outside the closed enumeration was supplied or stored."""


class MalformedIdentifierError(ValueError):
     """A user or property identifier is not a valid UUID."""
