"""Expense model."""

from sqlalchemy import Column, Integer, String, DateTime, Date, Boolean, Numeric, Text, ForeignKey, Index

from hostbaku.models.base import Base, utcnow


class Expense(Base):
    """A cost booked against a property on a given date."""
    __tablename__ = 'expenses'

    id = Column(Integer, primary_key=True)
    property_id = Column(Integer, ForeignKey('properties.id', ondelete='CASCADE'), nullable=False)
    recorded_by = Column(Integer, ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    category = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    amount = Column(Numeric(10, 2), nullable=False)
    expense_date = Column(Date, nullable=False)
    # Not consulted by statement aggregation; whether it should be is still open.
    is_billable = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    __table_args__ = (
        Index('ix_expenses_property_date', 'property_id', 'expense_date'),
    )

    def __repr__(self):
        return f"<Expense {self.category} {self.amount} on {self.expense_date}>"
