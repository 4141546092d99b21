# services/policy_enforcer.py
"""
Policy Enforcer - gates and filters property-scoped operations.

The enforcer consumes the evaluator's output and is never consulted by
the evaluator. It performs no writes.
"""
import logging
import uuid
from dataclasses import dataclass
from typing import Iterable, Optional, Set

from sqlalchemy.orm import Query

from models.property_grant import GrantRole
from services.access_evaluator import AccessEvaluator, AccessIndex, Identifier, coerce_uuid
from services.errors import AccessDenied, DenyReason
from services.role_registry import Operation, permitted_operations

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Decision:
     """Outcome of an authorization check: allow, or deny with a reason."""
     allowed: bool
     reason: Optional[DenyReason] = None
     role: Optional[GrantRole] = None

     @classmethod
     def allow(cls, role: GrantRole) -> "Decision":
          return cls(allowed=True, role=role)

     @classmethod
     def deny(cls, reason: DenyReason, role: Optional[GrantRole] = None) -> "Decision":
          return cls(allowed=False, reason=reason, role=role)

     def __bool__(self) -> bool:
          return self.allowed


class PolicyEnforcer:
     """Decision and filter layer in front of every property-scoped operation."""

     def __init__(self, evaluator: AccessEvaluator):
          self.evaluator = evaluator

     def authorize(self, user_id: Identifier, property_id: Identifier, operation: Operation) -> Decision:
          """
          Decide whether user_id may perform operation on property_id.

          Members of a disabled property get PROPERTY_DISABLED; anyone else
          without a role gets NOT_A_MEMBER, so a disabled property's
          existence is not revealed to outsiders.
          """
          operation = Operation(operation)
          membership = self.evaluator.membership(user_id, property_id)

          if membership.role is None:
               decision = Decision.deny(DenyReason.NOT_A_MEMBER)
          elif membership.disabled:
               decision = Decision.deny(DenyReason.PROPERTY_DISABLED, membership.role)
          elif operation not in permitted_operations(membership.role):
               decision = Decision.deny(DenyReason.INSUFFICIENT_ROLE, membership.role)
          else:
               decision = Decision.allow(membership.role)

          if not decision:
               logger.info(
                    "Denied %s on property %s for user %s: %s",
                    operation.value, property_id, user_id, decision.reason.value,
               )
          return decision

     def require(self, user_id: Identifier, property_id: Identifier, operation: Operation) -> GrantRole:
          """authorize(), raising AccessDenied instead of returning a deny decision."""
          decision = self.authorize(user_id, property_id, operation)
          if not decision:
               raise AccessDenied(
                    decision.reason,
                    f"{Operation(operation).value} not permitted on property {property_id}",
               )
          return decision.role

     def filter_by_access(self, user_id: Identifier, candidate_ids: Iterable[Identifier]) -> Set[uuid.UUID]:
          """
          Bulk form of authorize for listings: evaluates the user's access
          once and tests each candidate against it.
          """
          index = self.evaluator.access_index(user_id)
          candidates = {coerce_uuid(pid, "property id") for pid in candidate_ids}
          return {pid for pid in candidates if pid in index}

     def scope_query(self, user_id: Identifier, query: Query, property_column, index: Optional[AccessIndex] = None) -> Query:
          """
          Restrict a query over a property-scoped relation to the rows the
          user may see. An empty index yields a query that matches nothing.
          """
          if index is None:
               index = self.evaluator.access_index(user_id)
          return query.filter(property_column.in_(list(index.property_ids)))
