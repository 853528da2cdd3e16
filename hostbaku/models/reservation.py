"""Reservation model."""

from sqlalchemy import Column, Integer, String, DateTime, Date, Numeric, Text, ForeignKey, CheckConstraint, Index

from hostbaku.models.base import Base, utcnow


class Reservation(Base):
    """
    A guest stay. Occupies the half-open day range [check_in, check_out).

    Revenue is attributed to the month containing check_out.
    """
    __tablename__ = 'reservations'

    id = Column(Integer, primary_key=True)
    property_id = Column(Integer, ForeignKey('properties.id', ondelete='CASCADE'), nullable=False)
    unit_id = Column(Integer, ForeignKey('property_units.id', ondelete='SET NULL'), nullable=True)
    guest_name = Column(String(255), nullable=True)
    guest_email = Column(String(255), nullable=True)
    guest_phone = Column(String(50), nullable=True)
    check_in = Column(Date, nullable=False)
    check_out = Column(Date, nullable=False)
    num_guests = Column(Integer, default=1)
    total_amount = Column(Numeric(10, 2), nullable=True)
    platform = Column(String(50), default='airbnb')
    platform_booking_id = Column(String(100), nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    __table_args__ = (
        CheckConstraint('check_out > check_in', name='ck_reservations_stay_length'),
        Index('ix_reservations_property_checkout', 'property_id', 'check_out'),
    )

    def __repr__(self):
        return f"<Reservation {self.id} {self.check_in}..{self.check_out}>"
