# services/__init__.py
from .errors import AccessDenied, DenyReason, UnknownRoleError, MalformedIdentifierError
from .role_registry import Operation, permitted_operations, parse_role
from .access_evaluator import AccessEvaluator, AccessIndex, PropertyAccess
from .policy_enforcer import PolicyEnforcer, Decision
from .invitation_workflow import InvitationWorkflow

__all__ = [
     "AccessDenied",
     "DenyReason",
     "UnknownRoleError",
     "MalformedIdentifierError",
     "Operation",
     "permitted_operations",
     "parse_role",
     "AccessEvaluator",
     "AccessIndex",
     "PropertyAccess",
     "PolicyEnforcer",
     "Decision",
     "InvitationWorkflow",
]
