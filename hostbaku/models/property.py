"""Property and unit models."""

from sqlalchemy import Column, Integer, String, DateTime, Boolean, Numeric, Text, ForeignKey
from sqlalchemy.orm import relationship

from hostbaku.models.base import Base, utcnow


class Property(Base):
    """
    A managed rental property.

    owner_id is nullable: unmanaged properties exist and can still carry
    reservations and expenses. Ownership can change over time.
    """
    __tablename__ = 'properties'

    id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=False)
    address = Column(Text, nullable=False, default='')
    city = Column(String(100), nullable=True)
    description = Column(Text, nullable=True)
    owner_id = Column(Integer, ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    bedrooms = Column(Integer, default=1)
    bathrooms = Column(Numeric(3, 1), default=1)
    max_guests = Column(Integer, default=2)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    owner = relationship('User', foreign_keys=[owner_id])
    units = relationship('PropertyUnit', back_populates='rental_property', cascade='all, delete-orphan')

    @property
    def full_address(self):
        """Street address and city joined for display, skipping blanks."""
        return ', '.join(part for part in (self.address, self.city) if part)

    def __repr__(self):
        return f"<Property {self.name}>"


class PropertyUnit(Base):
    """Sub-unit of a multi-unit property (apartment, room)."""
    __tablename__ = 'property_units'

    id = Column(Integer, primary_key=True)
    property_id = Column(Integer, ForeignKey('properties.id', ondelete='CASCADE'), nullable=False)
    unit_number = Column(String(50), nullable=False)
    floor = Column(Integer, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    rental_property = relationship('Property', back_populates='units')

    def __repr__(self):
        return f"<PropertyUnit {self.unit_number} property={self.property_id}>"
