# schemas/property.py
"""
Pydantic schemas for property and unit endpoints.
"""
from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from models.property_grant import GrantRole


class PropertyCreate(BaseModel):
     """Schema for creating a new property."""
     property_name: str = Field(..., min_length=1, max_length=255)
     description: Optional[str] = None
     street: Optional[str] = Field(None, max_length=255)
     city: Optional[str] = Field(None, max_length=100)
     province: Optional[str] = Field(None, max_length=100)

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "property_name": "Sunset Condos",
                    "city": "Makati",
               }
          }
     )


class PropertyResponse(BaseModel):
     id: UUID
     property_name: str
     landlord_id: UUID
     description: Optional[str] = None
     street: Optional[str] = None
     city: Optional[str] = None
     province: Optional[str] = None
     units: int = 0
     created_at: Optional[datetime] = None
     disabled_at: Optional[datetime] = None

     # Caller's effective role
     role: Optional[GrantRole] = None

     model_config = ConfigDict(from_attributes=True)


class PropertyListResponse(BaseModel):
     properties: List[PropertyResponse]
     total: int


class UnitCreate(BaseModel):
     unit_number: str = Field(..., min_length=1, max_length=50)
     unit_type: Optional[str] = Field(None, max_length=100)
     rent_price: Optional[Decimal] = Field(None, gt=0, max_digits=12, decimal_places=2)
     floor: Optional[str] = Field(None, max_length=20)
     description: Optional[str] = None


class UnitResponse(BaseModel):
     id: UUID
     property_id: UUID
     unit_number: str
     unit_type: Optional[str] = None
     rent_price: Optional[Decimal] = None
     floor: Optional[str] = None
     status: str

     model_config = ConfigDict(from_attributes=True)
