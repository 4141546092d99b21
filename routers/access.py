# routers/access.py
"""
Access API routes.

Read-only views of the access engine for UIs and other services:
which properties the caller can reach, and whether one operation is allowed.
"""
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from routers.dependencies import get_enforcer, get_evaluator
from schemas.access import AuthorizationResponse, PropertyAccessResponse
from security import Identity, verify_token
from services.access_evaluator import AccessEvaluator
from services.policy_enforcer import PolicyEnforcer
from services.role_registry import Operation, permitted_operations

router = APIRouter(prefix="/api/access", tags=["access"])


@router.get(
     "/properties",
     response_model=List[PropertyAccessResponse],
     summary="List properties accessible to the caller"
)
def list_accessible_properties(
     evaluator: AccessEvaluator = Depends(get_evaluator),
     identity: Identity = Depends(verify_token),
):
     """
     Every non-disabled property the caller owns or holds an ACTIVE grant on,
     with the effective role and the operations it permits.
     """
     entries = sorted(evaluator.accessible_properties(identity.user_id), key=lambda e: str(e.property_id))
     return [
          PropertyAccessResponse(
               property_id=entry.property_id,
               role=entry.role,
               operations=sorted(permitted_operations(entry.role), key=lambda op: op.value),
          )
          for entry in entries
     ]


@router.get(
     "/check",
     response_model=AuthorizationResponse,
     summary="Check one operation on one property"
)
def check_access(
     property_id: UUID = Query(..., description="Property to check"),
     operation: Operation = Query(..., description="Operation to check"),
     enforcer: PolicyEnforcer = Depends(get_enforcer),
     identity: Identity = Depends(verify_token),
):
     """
     Always 200: a denial is a normal answer carrying a reason code
     (NOT_A_MEMBER, INSUFFICIENT_ROLE, PROPERTY_DISABLED).
     """
     decision = enforcer.authorize(identity.user_id, property_id, operation)
     return AuthorizationResponse(allow=decision.allowed, reason=decision.reason, role=decision.role)
