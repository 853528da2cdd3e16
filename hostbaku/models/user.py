"""User model for Flask app."""

from sqlalchemy import Column, Integer, String, DateTime, Boolean

from hostbaku.models.base import Base, utcnow


class User(Base):
    """
    Application user.

    Every user has exactly one role. Admins run the operation, cleaners work
    tasks, owners see their own properties and published statements.
    Login happens by email one-time code; this model only stores identity.
    """
    __tablename__ = 'users'

    ROLE_ADMIN = 'admin'
    ROLE_CLEANER = 'cleaner'
    ROLE_OWNER = 'owner'

    id = Column(Integer, primary_key=True)
    email = Column(String(255), unique=True, nullable=False)
    name = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=True)
    role = Column(String(20), nullable=False, default=ROLE_CLEANER)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f"<User {self.email} ({self.role})>"
