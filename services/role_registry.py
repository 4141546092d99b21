# services/role_registry.py
"""
Role registry - static mapping of roles to the operations they permit.

Pure lookup tables; no state and no I/O.
"""
import enum
from typing import FrozenSet, Union

from models.property_grant import GrantRole
from services.errors import UnknownRoleError


class Operation(str, enum.Enum):
     """Property-scoped operations gated by the policy enforcer."""
     VIEW_PROPERTY = "VIEW_PROPERTY"
     EDIT_PROPERTY = "EDIT_PROPERTY"
     DELETE_PROPERTY = "DELETE_PROPERTY"
     MANAGE_UNITS = "MANAGE_UNITS"
     MANAGE_TENANTS = "MANAGE_TENANTS"
     MANAGE_MAINTENANCE = "MANAGE_MAINTENANCE"
     VIEW_REPORTS = "VIEW_REPORTS"
     MANAGE_USERS = "MANAGE_USERS"


ALL_OPERATIONS: FrozenSet[Operation] = frozenset(Operation)

ROLE_OPERATIONS = {
     GrantRole.OWNER: ALL_OPERATIONS,
     GrantRole.PROPERTY_MANAGER: frozenset({
          Operation.VIEW_PROPERTY,
          Operation.EDIT_PROPERTY,
          Operation.MANAGE_UNITS,
          Operation.MANAGE_TENANTS,
          Operation.MANAGE_MAINTENANCE,
          Operation.VIEW_REPORTS,
     }),
     GrantRole.LEASING_AGENT: frozenset({
          Operation.VIEW_PROPERTY,
          Operation.MANAGE_TENANTS,
     }),
     GrantRole.MAINTENANCE_COORDINATOR: frozenset({
          Operation.VIEW_PROPERTY,
          Operation.MANAGE_MAINTENANCE,
     }),
     GrantRole.VIEWER: frozenset({
          Operation.VIEW_PROPERTY,
          Operation.VIEW_REPORTS,
     }),
}

# Higher wins when one user reaches a property through more than one path
ROLE_PRECEDENCE = (
     GrantRole.VIEWER,
     GrantRole.MAINTENANCE_COORDINATOR,
     GrantRole.LEASING_AGENT,
     GrantRole.PROPERTY_MANAGER,
     GrantRole.OWNER,
)
_RANKS = {role: rank for rank, role in enumerate(ROLE_PRECEDENCE)}


def parse_role(value: Union[str, GrantRole]) -> GrantRole:
     """Coerce a stored or submitted value to a GrantRole, rejecting anything unknown."""
     if isinstance(value, GrantRole):
          return value
     try:
          return GrantRole(str(value).strip().upper())
     except ValueError:
          raise UnknownRoleError(f"Unknown role: {value!r}") from None


def permitted_operations(role: Union[str, GrantRole]) -> FrozenSet[Operation]:
     """Operations authorized by a role."""
     return ROLE_OPERATIONS[parse_role(role)]


def role_rank(role: Union[str, GrantRole]) -> int:
     return _RANKS[parse_role(role)]


def stronger_role(a: GrantRole, b: GrantRole) -> GrantRole:
     return a if role_rank(a) >= role_rank(b) else b
