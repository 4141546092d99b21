# routers/properties.py
"""
Property API routes.

Creation seeds the ownership chain (property + OWNER self-grant in one
transaction). Listing is scoped to the caller's access index.
"""
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from database import get_session
from models import Property
from routers.dependencies import get_enforcer, get_workflow
from schemas.property import PropertyCreate, PropertyListResponse, PropertyResponse
from security import Identity, verify_token
from services.errors import AccessDenied, DenyReason
from services.invitation_workflow import InvitationWorkflow
from services.policy_enforcer import PolicyEnforcer
from services.role_registry import Operation

router = APIRouter(prefix="/api/properties", tags=["properties"])


@router.post(
     "",
     response_model=PropertyResponse,
     status_code=status.HTTP_201_CREATED,
     summary="Create a property"
)
def create_property(
     body: PropertyCreate,
     workflow: InvitationWorkflow = Depends(get_workflow),
     identity: Identity = Depends(verify_token),
):
     """
     Create a property owned by the caller. The caller's ACTIVE OWNER grant
     is written in the same transaction.
     """
     prop, grant = workflow.create_property(identity.user_id, **body.model_dump())
     return _build_property_response(prop, grant.role)


@router.get(
     "",
     response_model=PropertyListResponse,
     summary="List my properties"
)
def list_properties(
     db: Session = Depends(get_session),
     enforcer: PolicyEnforcer = Depends(get_enforcer),
     identity: Identity = Depends(verify_token),
):
     """Properties the caller can access, with the caller's role on each."""
     index = enforcer.evaluator.access_index(identity.user_id)
     query = enforcer.scope_query(identity.user_id, db.query(Property), Property.id, index=index)
     properties = query.order_by(Property.property_name).all()
     return PropertyListResponse(
          properties=[_build_property_response(p, index.role_for(p.id)) for p in properties],
          total=len(properties),
     )


@router.get(
     "/{property_id}",
     response_model=PropertyResponse,
     summary="Get property by ID"
)
def get_property(
     property_id: UUID,
     db: Session = Depends(get_session),
     enforcer: PolicyEnforcer = Depends(get_enforcer),
     identity: Identity = Depends(verify_token),
):
     """
     Requires VIEW_PROPERTY.

     Non-members get 404 rather than 403 so property ids cannot be probed;
     members of a disabled property get 410 (PROPERTY_DISABLED).
     """
     decision = enforcer.authorize(identity.user_id, property_id, Operation.VIEW_PROPERTY)
     if decision.reason == DenyReason.NOT_A_MEMBER:
          raise HTTPException(
               status_code=status.HTTP_404_NOT_FOUND,
               detail=f"Property with ID {property_id} not found"
          )
     if not decision:
          raise AccessDenied(decision.reason, "VIEW_PROPERTY not permitted")

     prop = db.get(Property, property_id)
     return _build_property_response(prop, decision.role)


@router.delete(
     "/{property_id}",
     status_code=status.HTTP_204_NO_CONTENT,
     summary="Disable (soft-delete) a property"
)
def disable_property(
     property_id: UUID,
     workflow: InvitationWorkflow = Depends(get_workflow),
     identity: Identity = Depends(verify_token),
):
     """Requires DELETE_PROPERTY. The property disappears from every user's access."""
     workflow.disable_property(identity.user_id, property_id)
     return Response(status_code=status.HTTP_204_NO_CONTENT)


def _build_property_response(prop: Property, role) -> PropertyResponse:
     response = PropertyResponse.model_validate(prop)
     response.role = role
     return response
