# routers/dependencies.py
"""
Per-request service wiring.

Every request gets its own evaluator, enforcer and workflow bound to the
request's session; nothing is shared between requests.
"""
from fastapi import Depends
from sqlalchemy.orm import Session

from database import get_session
from services.access_evaluator import AccessEvaluator
from services.invitation_workflow import InvitationWorkflow
from services.policy_enforcer import PolicyEnforcer


def get_evaluator(db: Session = Depends(get_session)) -> AccessEvaluator:
     return AccessEvaluator(db)


def get_enforcer(evaluator: AccessEvaluator = Depends(get_evaluator)) -> PolicyEnforcer:
     return PolicyEnforcer(evaluator)


def get_workflow(
     db: Session = Depends(get_session),
     enforcer: PolicyEnforcer = Depends(get_enforcer),
) -> InvitationWorkflow:
     return InvitationWorkflow(db, enforcer)
