# routers/units.py
"""
Property unit API routes.

Units are property-scoped rows: listings go through the enforcer's
scope_query and writes require MANAGE_UNITS on the parent property.
"""
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from database import get_session
from models import Property, PropertyUnit
from routers.dependencies import get_enforcer
from schemas.property import UnitCreate, UnitResponse
from security import Identity, verify_token
from services.policy_enforcer import PolicyEnforcer
from services.role_registry import Operation

router = APIRouter(prefix="/api", tags=["units"])


@router.get(
     "/property-units",
     response_model=List[UnitResponse],
     summary="List units the caller can see"
)
def list_units(
     property_id: Optional[UUID] = Query(None, description="Filter by property"),
     vacant_only: bool = Query(False, description="Show only vacant units"),
     db: Session = Depends(get_session),
     enforcer: PolicyEnforcer = Depends(get_enforcer),
     identity: Identity = Depends(verify_token),
):
     """
     Units of every property the caller can access. Filtering by a property
     the caller cannot access returns an empty list, not an error.
     """
     query = enforcer.scope_query(identity.user_id, db.query(PropertyUnit), PropertyUnit.property_id)

     if property_id:
          query = query.filter(PropertyUnit.property_id == property_id)

     if vacant_only:
          query = query.filter(PropertyUnit.status == "vacant")

     return query.order_by(PropertyUnit.unit_number).all()


@router.post(
     "/properties/{property_id}/units",
     response_model=UnitResponse,
     status_code=status.HTTP_201_CREATED,
     summary="Add a unit to a property"
)
def create_unit(
     property_id: UUID,
     body: UnitCreate,
     db: Session = Depends(get_session),
     enforcer: PolicyEnforcer = Depends(get_enforcer),
     identity: Identity = Depends(verify_token),
):
     """Requires MANAGE_UNITS on the property."""
     enforcer.require(identity.user_id, property_id, Operation.MANAGE_UNITS)

     unit = PropertyUnit(property_id=property_id, **body.model_dump())
     db.add(unit)

     prop = db.get(Property, property_id)
     prop.units = (prop.units or 0) + 1

     db.flush()
     db.refresh(unit)
     return unit
