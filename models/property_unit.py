# models/property_unit.py
import uuid

from sqlalchemy import Column, String, Numeric, Text, DateTime, ForeignKey, Uuid, func
from sqlalchemy.orm import relationship
from .base import Base


class PropertyUnit(Base):
     """
     PropertyUnit model - individual units within a property.
     Rows are property-scoped: listing them always goes through the
     policy enforcer's scope_query.
     """
     __tablename__ = "property_units"

     id = Column(Uuid, primary_key=True, default=uuid.uuid4)
     property_id = Column(Uuid, ForeignKey("properties.id", ondelete="CASCADE"), nullable=False, index=True)

     unit_type = Column(String(100), nullable=True)
     unit_number = Column(String(50), nullable=False)
     rent_price = Column(Numeric(12, 2), nullable=True)
     floor = Column(String(20), nullable=True)
     description = Column(Text, nullable=True)
     status = Column(String(50), default="vacant", nullable=False)  # vacant, occupied

     # Timestamps
     created_at = Column(DateTime, server_default=func.now(), nullable=False)
     updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

     # Relationships
     property = relationship("Property", back_populates="property_units")

     def __repr__(self):
          return f"<PropertyUnit(id={self.id}, unit_number='{self.unit_number}', status='{self.status}')>"
