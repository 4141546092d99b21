# models/property.py
import uuid

from sqlalchemy import Column, Integer, String, Text, DateTime, Uuid, func
from sqlalchemy.orm import relationship
from .base import Base


class Property(Base):
     """
     Property model - the entity protected by the access engine.

     landlord_id is the primordial owner fixed at creation time and,
     together with disabled_at, is the only property data the access
     evaluator reads.
     """
     __tablename__ = "properties"

     id = Column(Uuid, primary_key=True, default=uuid.uuid4)
     property_name = Column(String(255), nullable=False)
     landlord_id = Column(Uuid, nullable=False, index=True)
     description = Column(Text, nullable=True)

     # Address
     street = Column(String(255), nullable=True)
     city = Column(String(100), nullable=True)
     province = Column(String(100), nullable=True)

     units = Column(Integer, default=0, nullable=False)

     # Timestamps
     created_at = Column(DateTime, server_default=func.now(), nullable=False)
     updated_at = Column(DateTime, onupdate=func.now(), nullable=True)
     disabled_at = Column(DateTime, nullable=True, index=True)  # soft delete

     # Relationships
     property_units = relationship("PropertyUnit", back_populates="property", cascade="all, delete-orphan")
     grants = relationship("PropertyGrant", back_populates="property", cascade="all, delete-orphan")

     def __repr__(self):
          return f"<Property(id={self.id}, name='{self.property_name}')>"

     @property
     def is_disabled(self) -> bool:
          return self.disabled_at is not None
