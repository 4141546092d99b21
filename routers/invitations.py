# routers/invitations.py
"""
Invitation and grant API routes.

- Owners (MANAGE_USERS) invite, list and revoke.
- Invitees see their own pending invitations and accept them.
"""
from typing import List
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, Response, status

from models import Property
from routers.dependencies import get_workflow
from schemas.invitation import (
     AcceptInvitationResponse,
     GrantResponse,
     InvitationCreate,
     InvitationCreatedResponse,
)
from security import Identity, verify_token
from services.invitation_workflow import InvitationWorkflow
from utils.email import send_invitation_email

router = APIRouter(prefix="/api", tags=["invitations"])


@router.post(
     "/properties/{property_id}/invitations",
     response_model=InvitationCreatedResponse,
     status_code=status.HTTP_201_CREATED,
     summary="Invite a user to a property"
)
def invite(
     property_id: UUID,
     body: InvitationCreate,
     background_tasks: BackgroundTasks,
     workflow: InvitationWorkflow = Depends(get_workflow),
     identity: Identity = Depends(verify_token),
):
     """
     Requires MANAGE_USERS. Returns 409 DUPLICATE_GRANT when the invitee
     already has a pending or active grant, so the UI can say "already
     invited" rather than "forbidden".

     E-mail invitations are delivered after the transaction commits.
     """
     grant = workflow.invite(
          identity.user_id,
          property_id,
          body.role,
          invitee_user_id=body.invitee_user_id,
          invitee_email=body.invitee_email,
     )
     if grant.invitee_email:
          prop = workflow.db.get(Property, property_id)
          background_tasks.add_task(
               send_invitation_email,
               grant.invitee_email,
               prop.property_name,
               grant.role.value,
               str(grant.id),
          )
     return InvitationCreatedResponse(invitation_id=grant.id, expires_at=grant.expires_at)


@router.get(
     "/properties/{property_id}/invitations",
     response_model=List[GrantResponse],
     summary="List pending invitations on a property"
)
def list_invitations(
     property_id: UUID,
     workflow: InvitationWorkflow = Depends(get_workflow),
     identity: Identity = Depends(verify_token),
):
     """Requires MANAGE_USERS. Expired invitations are omitted."""
     return workflow.list_invitations(identity.user_id, property_id)


@router.get(
     "/properties/{property_id}/members",
     response_model=List[GrantResponse],
     summary="List active members of a property"
)
def list_members(
     property_id: UUID,
     workflow: InvitationWorkflow = Depends(get_workflow),
     identity: Identity = Depends(verify_token),
):
     """Requires MANAGE_USERS."""
     return workflow.list_members(identity.user_id, property_id)


@router.get(
     "/invitations/mine",
     response_model=List[GrantResponse],
     summary="List my pending invitations"
)
def my_invitations(
     workflow: InvitationWorkflow = Depends(get_workflow),
     identity: Identity = Depends(verify_token),
):
     """Invitations addressed to the caller's user id or token e-mail."""
     return workflow.pending_for(identity.user_id, identity.email)


@router.post(
     "/invitations/{invitation_id}/accept",
     response_model=AcceptInvitationResponse,
     summary="Accept an invitation"
)
def accept_invitation(
     invitation_id: UUID,
     workflow: InvitationWorkflow = Depends(get_workflow),
     identity: Identity = Depends(verify_token),
):
     """
     Only the invitee may accept (403 NOT_INVITEE otherwise). Expired
     invitations give 410 INVITATION_EXPIRED; a repeated accept gives
     409 ALREADY_ACCEPTED.
     """
     grant = workflow.accept(identity.user_id, invitation_id, email=identity.email)
     return AcceptInvitationResponse(grant_id=grant.id, property_id=grant.property_id, role=grant.role)


@router.delete(
     "/grants/{grant_id}",
     status_code=status.HTTP_204_NO_CONTENT,
     summary="Revoke a grant or pending invitation"
)
def revoke_grant(
     grant_id: UUID,
     workflow: InvitationWorkflow = Depends(get_workflow),
     identity: Identity = Depends(verify_token),
):
     """Requires MANAGE_USERS on the grant's property."""
     workflow.revoke(identity.user_id, grant_id)
     return Response(status_code=status.HTTP_204_NO_CONTENT)
