"""Owner statement model."""

from sqlalchemy import Column, Integer, DateTime, Date, Boolean, Numeric, Text, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from hostbaku.models.base import Base, utcnow


def _money(value):
    return float(value) if value is not None else 0.0


class OwnerStatement(Base):
    """
    Monthly financial statement for one property.

    statement_date is always the first day of the covered month. At most one
    statement exists per (property, month); the unique constraint is what
    enforces it, including under concurrent generation.
    """
    __tablename__ = 'owner_statements'

    id = Column(Integer, primary_key=True)
    property_id = Column(Integer, ForeignKey('properties.id', ondelete='CASCADE'), nullable=False)
    owner_id = Column(Integer, ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    statement_date = Column(Date, nullable=False)
    total_revenue = Column(Numeric(10, 2), nullable=False, default=0)
    total_expenses = Column(Numeric(10, 2), nullable=False, default=0)
    management_fee = Column(Numeric(10, 2), nullable=False, default=0)
    net_income = Column(Numeric(10, 2), nullable=False, default=0)
    published = Column(Boolean, nullable=False, default=False)
    published_at = Column(DateTime(timezone=True), nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    rental_property = relationship('Property')
    owner = relationship('User', foreign_keys=[owner_id])

    __table_args__ = (
        UniqueConstraint('property_id', 'statement_date', name='uq_owner_statements_property_period'),
    )

    @property
    def year(self):
        return self.statement_date.year

    @property
    def month(self):
        return self.statement_date.month

    def to_dict(self):
        """Convert statement to dictionary. Money fields are plain numbers."""
        prop = self.rental_property
        live_owner = prop.owner if prop is not None else None
        return {
            'id': self.id,
            'property_id': self.property_id,
            'property_name': prop.name if prop is not None else None,
            'owner_id': self.owner_id,
            'owner_name': live_owner.name if live_owner is not None else None,
            'statement_date': self.statement_date.isoformat(),
            'year': self.year,
            'month': self.month,
            'total_revenue': _money(self.total_revenue),
            'total_expenses': _money(self.total_expenses),
            'management_fee': _money(self.management_fee),
            'net_income': _money(self.net_income),
            'published': bool(self.published),
            'published_at': self.published_at.isoformat() if self.published_at else None,
            'notes': self.notes,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        state = 'published' if self.published else 'draft'
        return f"<OwnerStatement property={self.property_id} {self.statement_date:%Y-%m} ({state})>"
