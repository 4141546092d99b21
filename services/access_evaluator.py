# services/access_evaluator.py
"""
Access Evaluator - computes which properties a user may access, and as what.

The evaluator is a leaf computation. It reads exactly two base relations:

1. properties.landlord_id  (direct ownership, role OWNER)
2. property_users rows with status ACTIVE  (role = grant.role)

and never reads through anything the policy enforcer produces, so an
access decision can never depend on itself. Both relations are combined
in a single UNION ALL statement, so one evaluation sees one consistent
snapshot of the store. Nothing is cached between calls: a revocation
committed before the call is always visible to it.
"""
import logging
import uuid
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, Iterator, List, Optional, Union

from sqlalchemy import String, cast, literal, select, union_all
from sqlalchemy.orm import Session

from models import Property, PropertyGrant
from models.property_grant import GrantRole, GrantStatus
from services.errors import MalformedIdentifierError
from services.role_registry import parse_role, stronger_role

logger = logging.getLogger(__name__)

Identifier = Union[uuid.UUID, str]


def coerce_uuid(value: Identifier, what: str = "identifier") -> uuid.UUID:
     """Parse a UUID, raising MalformedIdentifierError instead of a bare ValueError."""
     if isinstance(value, uuid.UUID):
          return value
     try:
          return uuid.UUID(str(value))
     except (TypeError, ValueError):
          raise MalformedIdentifierError(f"Malformed {what}: {value!r}") from None


@dataclass(frozen=True)
class PropertyAccess:
     """One (property, effective role) pair reachable by a user."""
     property_id: uuid.UUID
     role: GrantRole


@dataclass(frozen=True)
class Membership:
     """Effective role on one property, including disabled properties."""
     role: Optional[GrantRole]
     disabled: bool = False


class AccessIndex:
     """
     Derived, never persisted: property_id -> effective role for one user.

     Built once per evaluation and then used for O(1) membership tests.
     """

     def __init__(self, user_id: uuid.UUID, roles: Dict[uuid.UUID, GrantRole]):
          self.user_id = user_id
          self._roles = dict(roles)

     def __contains__(self, property_id) -> bool:
          return property_id in self._roles

     def __iter__(self) -> Iterator[uuid.UUID]:
          return iter(self._roles)

     def __len__(self) -> int:
          return len(self._roles)

     def role_for(self, property_id: uuid.UUID) -> Optional[GrantRole]:
          return self._roles.get(property_id)

     @property
     def property_ids(self) -> FrozenSet[uuid.UUID]:
          return frozenset(self._roles)

     def entries(self) -> FrozenSet[PropertyAccess]:
          return frozenset(PropertyAccess(pid, role) for pid, role in self._roles.items())


class AccessEvaluator:
     """
     Canonical access computation. Every other "does this user have
     access" helper in the codebase is a thin caller of this class.
     """

     def __init__(self, db: Session):
          self.db = db

     # ------------------------------------------------------------------
     # Base-relation read
     # ------------------------------------------------------------------

     def _membership_rows(
          self,
          user_id: uuid.UUID,
          property_id: Optional[uuid.UUID] = None,
          include_disabled: bool = False,
     ) -> List[tuple]:
          """
          One SELECT over the ownership column and the ACTIVE grants.

          Rows are (property_id, role, disabled_at); a property can appear
          twice when the user is landlord and also holds a grant.
          """
          owned = select(
               Property.id.label("property_id"),
               cast(literal(GrantRole.OWNER.value), String(32)).label("role"),
               Property.disabled_at.label("disabled_at"),
          ).where(Property.landlord_id == user_id)

          granted = (
               select(
                    PropertyGrant.property_id.label("property_id"),
                    cast(PropertyGrant.role, String(32)).label("role"),
                    Property.disabled_at.label("disabled_at"),
               )
               .join(Property, Property.id == PropertyGrant.property_id)
               .where(
                    PropertyGrant.user_id == user_id,
                    PropertyGrant.status == GrantStatus.ACTIVE,
               )
          )

          if property_id is not None:
               owned = owned.where(Property.id == property_id)
               granted = granted.where(PropertyGrant.property_id == property_id)
          if not include_disabled:
               owned = owned.where(Property.disabled_at.is_(None))
               granted = granted.where(Property.disabled_at.is_(None))

          return self.db.execute(union_all(owned, granted)).all()

     @staticmethod
     def _fold(rows: Iterable[tuple]) -> Dict[uuid.UUID, GrantRole]:
          """Collapse duplicate paths to one role per property; the stronger role wins."""
          roles: Dict[uuid.UUID, GrantRole] = {}
          for row_property_id, raw_role, _disabled_at in rows:
               role = parse_role(raw_role)
               current = roles.get(row_property_id)
               roles[row_property_id] = role if current is None else stronger_role(current, role)
          return roles

     # ------------------------------------------------------------------
     # Public contract
     # ------------------------------------------------------------------

     def access_index(self, user_id: Identifier) -> AccessIndex:
          """Every non-disabled property the user can reach, with its effective role."""
          uid = coerce_uuid(user_id, "user id")
          roles = self._fold(self._membership_rows(uid))
          logger.debug("Evaluated access for user %s: %d properties", uid, len(roles))
          return AccessIndex(uid, roles)

     def accessible_properties(self, user_id: Identifier) -> FrozenSet[PropertyAccess]:
          return self.access_index(user_id).entries()

     def role_for(self, user_id: Identifier, property_id: Identifier) -> Optional[GrantRole]:
          """Effective role on one property, or None (disabled properties give None)."""
          uid = coerce_uuid(user_id, "user id")
          pid = coerce_uuid(property_id, "property id")
          return self._fold(self._membership_rows(uid, property_id=pid)).get(pid)

     def has_access(self, user_id: Identifier, property_id: Identifier) -> bool:
          return self.role_for(user_id, property_id) is not None

     def membership(self, user_id: Identifier, property_id: Identifier) -> Membership:
          """
          Like role_for, but still resolves the role on a disabled property
          so the enforcer can tell a member "this property is disabled"
          instead of "you are not a member". Non-members learn nothing.
          """
          uid = coerce_uuid(user_id, "user id")
          pid = coerce_uuid(property_id, "property id")
          rows = self._membership_rows(uid, property_id=pid, include_disabled=True)
          if not rows:
               return Membership(role=None)
          disabled = any(row[2] is not None for row in rows)
          return Membership(role=self._fold(rows)[pid], disabled=disabled)
