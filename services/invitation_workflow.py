# services/invitation_workflow.py
"""
Invitation Workflow - the only writer of the grant store.

State machine per grant:

     PENDING --accept (invitee only)------------> ACTIVE
     PENDING --revoke (MANAGE_USERS)------------> REVOKED
     ACTIVE  --revoke (MANAGE_USERS)------------> REVOKED
     PENDING --expiry (time, no actor)----------> EXPIRED

Every operation checks authorization before touching a row and either
completes or raises AccessDenied with nothing written. Status changes
are compare-and-swap UPDATEs guarded on the expected prior status, so
two concurrent transitions of the same grant cannot both succeed.
The caller owns the transaction (commit/rollback), as with the other
services.
"""
import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional, Tuple

from sqlalchemy import func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from config import INVITATION_EXPIRY_DAYS
from models import Property, PropertyGrant
from models.property_grant import GrantRole, GrantStatus, LIVE_STATUSES, TERMINAL_STATUSES
from services.access_evaluator import AccessEvaluator, Identifier, coerce_uuid
from services.errors import AccessDenied, DenyReason
from services.policy_enforcer import PolicyEnforcer
from services.role_registry import Operation, parse_role

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
     """Naive UTC timestamp, matching the DateTime columns."""
     return datetime.now(timezone.utc).replace(tzinfo=None)


def normalize_email(email: Optional[str]) -> Optional[str]:
     if email is None:
          return None
     email = email.strip().lower()
     return email or None


class InvitationWorkflow:
     """Service class for grant lifecycle operations."""

     def __init__(
          self,
          db: Session,
          enforcer: Optional[PolicyEnforcer] = None,
          clock: Callable[[], datetime] = utcnow,
          expiry_days: int = INVITATION_EXPIRY_DAYS,
     ):
          self.db = db
          self.enforcer = enforcer or PolicyEnforcer(AccessEvaluator(db))
          self.clock = clock
          self.expiry = timedelta(days=expiry_days)

     # ------------------------------------------------------------------
     # Property creation (ownership base case)
     # ------------------------------------------------------------------

     def create_property(self, creator_id: Identifier, property_name: str, **fields) -> Tuple[Property, PropertyGrant]:
          """
          Create a property together with its creator's ACTIVE OWNER grant.

          Both rows are flushed in the caller's transaction, so no other
          transaction can ever observe the property without its owner grant.
          """
          creator = coerce_uuid(creator_id, "user id")
          now = self.clock()

          prop = Property(id=uuid.uuid4(), property_name=property_name, landlord_id=creator, **fields)
          grant = PropertyGrant(
               id=uuid.uuid4(),
               property_id=prop.id,
               user_id=creator,
               role=GrantRole.OWNER,
               status=GrantStatus.ACTIVE,
               invited_by=None,
               invited_at=now,
               accepted_at=now,
          )
          self.db.add_all([prop, grant])
          self.db.flush()

          logger.info("Property %s created by %s with OWNER self-grant %s", prop.id, creator, grant.id)
          return prop, grant

     def disable_property(self, actor_id: Identifier, property_id: Identifier) -> Property:
          """Soft-delete a property; it drops out of every evaluation immediately."""
          self.enforcer.require(actor_id, property_id, Operation.DELETE_PROPERTY)
          prop = self.db.get(Property, coerce_uuid(property_id, "property id"))
          prop.disabled_at = self.clock()
          self.db.flush()
          logger.info("Property %s disabled by %s", prop.id, actor_id)
          return prop

     # ------------------------------------------------------------------
     # Transitions
     # ------------------------------------------------------------------

     def invite(
          self,
          inviter_id: Identifier,
          property_id: Identifier,
          role,
          invitee_user_id: Optional[Identifier] = None,
          invitee_email: Optional[str] = None,
          expires_in: Optional[timedelta] = None,
     ) -> PropertyGrant:
          """
          Create a PENDING grant for an invitee addressed by user id or e-mail.

          Raises:
               AccessDenied: NOT_A_MEMBER / INSUFFICIENT_ROLE / PROPERTY_DISABLED when the
                    inviter lacks MANAGE_USERS, DUPLICATE_GRANT when the invitee already
                    holds a pending or active grant on the property.
               UnknownRoleError, MalformedIdentifierError, ValueError: malformed input.
          """
          role = parse_role(role)
          email = normalize_email(invitee_email)
          if (invitee_user_id is None) == (email is None):
               raise ValueError("Exactly one of invitee_user_id or invitee_email is required")
          invitee = coerce_uuid(invitee_user_id, "user id") if invitee_user_id is not None else None
          pid = coerce_uuid(property_id, "property id")
          inviter = coerce_uuid(inviter_id, "user id")

          self.enforcer.require(inviter, pid, Operation.MANAGE_USERS)

          now = self.clock()
          # Serialize invitations per property
          self.db.execute(select(Property.id).where(Property.id == pid).with_for_update())

          # Lazily expired rows still hold their uniqueness slot until marked
          self._expire_pending(now, property_id=pid)

          if invitee is not None:
               duplicate = self.db.execute(
                    select(PropertyGrant.id).where(
                         PropertyGrant.property_id == pid,
                         PropertyGrant.user_id == invitee,
                         PropertyGrant.status.in_(LIVE_STATUSES),
                    )
               ).first()
          else:
               duplicate = self.db.execute(
                    select(PropertyGrant.id).where(
                         PropertyGrant.property_id == pid,
                         PropertyGrant.invitee_email == email,
                         PropertyGrant.status == GrantStatus.PENDING,
                    )
               ).first()
          if duplicate is not None:
               raise AccessDenied(DenyReason.DUPLICATE_GRANT, "Invitee already has a pending or active grant")

          grant = PropertyGrant(
               id=uuid.uuid4(),
               property_id=pid,
               user_id=invitee,
               invitee_email=email,
               role=role,
               status=GrantStatus.PENDING,
               invited_by=inviter,
               invited_at=now,
               expires_at=now + (expires_in if expires_in is not None else self.expiry),
          )
          self.db.add(grant)
          try:
               self.db.flush()
          except IntegrityError:
               # Lost a race with a concurrent invite of the same invitee
               self.db.rollback()
               raise AccessDenied(DenyReason.DUPLICATE_GRANT, "Invitee already has a pending or active grant")

          logger.info(
               "Invitation %s created on property %s by %s (role=%s)",
               grant.id, pid, inviter, role.value,
          )
          return grant

     def accept(self, user_id: Identifier, invitation_id: Identifier, email: Optional[str] = None) -> PropertyGrant:
          """
          PENDING -> ACTIVE, performed by the invitee only.

          A second accept of the same invitation, concurrent or not, gets
          ALREADY_ACCEPTED; at most one ACTIVE grant ever results.
          """
          uid = coerce_uuid(user_id, "user id")
          grant = self.db.get(PropertyGrant, coerce_uuid(invitation_id, "invitation id"))
          if grant is None:
               raise AccessDenied(DenyReason.NOT_FOUND, "Invitation not found")
          if not grant.is_addressed_to(uid, email):
               raise AccessDenied(DenyReason.NOT_INVITEE, "Invitation is addressed to someone else")

          now = self.clock()
          self._check_acceptable(grant, now)

          prop = self.db.get(Property, grant.property_id)
          if prop.is_disabled:
               raise AccessDenied(DenyReason.PROPERTY_DISABLED, "Property is disabled")

          if grant.user_id is None:
               # E-mail invitation: the accepting identity must not already be a member
               existing = self.db.execute(
                    select(PropertyGrant.id).where(
                         PropertyGrant.property_id == grant.property_id,
                         PropertyGrant.user_id == uid,
                         PropertyGrant.status.in_(LIVE_STATUSES),
                    )
               ).first()
               if existing is not None:
                    raise AccessDenied(DenyReason.DUPLICATE_GRANT, "Already a member of this property")

          stmt = (
               update(PropertyGrant)
               .where(
                    PropertyGrant.id == grant.id,
                    PropertyGrant.status == GrantStatus.PENDING,
                    or_(PropertyGrant.expires_at.is_(None), PropertyGrant.expires_at > now),
               )
               .values(status=GrantStatus.ACTIVE, user_id=uid, accepted_at=now, updated_at=now)
               .execution_options(synchronize_session=False)
          )
          try:
               result = self.db.execute(stmt)
          except IntegrityError:
               self.db.rollback()
               raise AccessDenied(DenyReason.DUPLICATE_GRANT, "Already a member of this property")

          self.db.refresh(grant)
          if result.rowcount != 1:
               # Someone else moved the grant first; report what they did
               self._check_acceptable(grant, now)
               raise AccessDenied(DenyReason.INVALID_TRANSITION, "Invitation is no longer pending")

          logger.info("Invitation %s accepted by %s", grant.id, uid)
          return grant

     def revoke(self, actor_id: Identifier, grant_id: Identifier) -> PropertyGrant:
          """
          PENDING or ACTIVE -> REVOKED. The change is visible to the very
          next evaluation once the caller's transaction commits.

          The landlord's OWNER grant and the last ACTIVE OWNER grant of a
          property are never revoked (LAST_OWNER).
          """
          actor = coerce_uuid(actor_id, "user id")
          grant = self.db.get(PropertyGrant, coerce_uuid(grant_id, "grant id"))
          if grant is None:
               raise AccessDenied(DenyReason.NOT_FOUND, "Grant not found")

          self.enforcer.require(actor, grant.property_id, Operation.MANAGE_USERS)

          now = self.clock()
          if grant.effective_status(now) in TERMINAL_STATUSES:
               raise AccessDenied(
                    DenyReason.INVALID_TRANSITION,
                    f"Grant is already {grant.effective_status(now).value}",
               )

          # Serialize ownership changes per property
          prop = self.db.execute(
               select(Property).where(Property.id == grant.property_id).with_for_update()
          ).scalar_one()

          # landlord_id ownership always wins evaluation
          if grant.role == GrantRole.OWNER and grant.user_id == prop.landlord_id:
               raise AccessDenied(DenyReason.LAST_OWNER, "The landlord's ownership cannot be revoked")

          if grant.role == GrantRole.OWNER and grant.status == GrantStatus.ACTIVE:
               owners = self.db.execute(
                    select(func.count(PropertyGrant.id)).where(
                         PropertyGrant.property_id == grant.property_id,
                         PropertyGrant.role == GrantRole.OWNER,
                         PropertyGrant.status == GrantStatus.ACTIVE,
                    )
               ).scalar_one()
               if owners <= 1:
                    raise AccessDenied(DenyReason.LAST_OWNER, "Cannot revoke the last owner of a property")

          stmt = (
               update(PropertyGrant)
               .where(
                    PropertyGrant.id == grant.id,
                    PropertyGrant.status.in_(LIVE_STATUSES),
               )
               .values(status=GrantStatus.REVOKED, revoked_at=now, revoked_by=actor, updated_at=now)
               .execution_options(synchronize_session=False)
          )
          result = self.db.execute(stmt)
          self.db.refresh(grant)
          if result.rowcount != 1:
               raise AccessDenied(DenyReason.INVALID_TRANSITION, f"Grant is already {grant.status.value}")

          logger.info("Grant %s on property %s revoked by %s", grant.id, grant.property_id, actor)
          return grant

     def expire_stale_invitations(self, now: Optional[datetime] = None) -> int:
          """
          Mark every PENDING invitation past its expiry as EXPIRED.

          Readers already treat such rows as expired; this sweep only makes
          the stored status agree. Returns the number of rows updated.
          """
          count = self._expire_pending(now or self.clock())
          if count:
               logger.info("Expired %d stale invitations", count)
          return count

     # ------------------------------------------------------------------
     # Reads
     # ------------------------------------------------------------------

     def list_members(self, actor_id: Identifier, property_id: Identifier) -> List[PropertyGrant]:
          self.enforcer.require(actor_id, property_id, Operation.MANAGE_USERS)
          return list(self.db.execute(
               select(PropertyGrant)
               .where(
                    PropertyGrant.property_id == coerce_uuid(property_id, "property id"),
                    PropertyGrant.status == GrantStatus.ACTIVE,
               )
               .order_by(PropertyGrant.accepted_at)
          ).scalars())

     def list_invitations(self, actor_id: Identifier, property_id: Identifier) -> List[PropertyGrant]:
          """Pending, unexpired invitations on a property."""
          self.enforcer.require(actor_id, property_id, Operation.MANAGE_USERS)
          now = self.clock()
          return list(self.db.execute(
               select(PropertyGrant)
               .where(
                    PropertyGrant.property_id == coerce_uuid(property_id, "property id"),
                    PropertyGrant.status == GrantStatus.PENDING,
                    or_(PropertyGrant.expires_at.is_(None), PropertyGrant.expires_at > now),
               )
               .order_by(PropertyGrant.invited_at)
          ).scalars())

     def pending_for(self, user_id: Identifier, email: Optional[str] = None) -> List[PropertyGrant]:
          """The invitee's own inbox: unexpired invitations on live properties."""
          uid = coerce_uuid(user_id, "user id")
          email = normalize_email(email)
          now = self.clock()

          addressed = PropertyGrant.user_id == uid
          if email is not None:
               addressed = or_(
                    addressed,
                    (PropertyGrant.user_id.is_(None)) & (PropertyGrant.invitee_email == email),
               )
          return list(self.db.execute(
               select(PropertyGrant)
               .join(Property, Property.id == PropertyGrant.property_id)
               .where(
                    addressed,
                    PropertyGrant.status == GrantStatus.PENDING,
                    or_(PropertyGrant.expires_at.is_(None), PropertyGrant.expires_at > now),
                    Property.disabled_at.is_(None),
               )
               .order_by(PropertyGrant.invited_at)
          ).scalars())

     # ------------------------------------------------------------------
     # Helpers
     # ------------------------------------------------------------------

     @staticmethod
     def _check_acceptable(grant: PropertyGrant, now: datetime) -> None:
          status = grant.effective_status(now)
          if status == GrantStatus.ACTIVE:
               raise AccessDenied(DenyReason.ALREADY_ACCEPTED, "Invitation was already accepted")
          if status == GrantStatus.EXPIRED:
               raise AccessDenied(DenyReason.INVITATION_EXPIRED, "Invitation has expired")
          if status == GrantStatus.REVOKED:
               raise AccessDenied(DenyReason.INVALID_TRANSITION, "Invitation was revoked")

     def _expire_pending(self, now: datetime, property_id: Optional[uuid.UUID] = None) -> int:
          stmt = (
               update(PropertyGrant)
               .where(
                    PropertyGrant.status == GrantStatus.PENDING,
                    PropertyGrant.expires_at.is_not(None),
                    PropertyGrant.expires_at <= now,
               )
               .values(status=GrantStatus.EXPIRED, updated_at=now)
               .execution_options(synchronize_session=False)
          )
          if property_id is not None:
               stmt = stmt.where(PropertyGrant.property_id == property_id)
          return self.db.execute(stmt).rowcount
