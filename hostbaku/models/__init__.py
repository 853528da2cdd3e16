"""Database models for Flask app."""
from hostbaku.models.base import Base
from hostbaku.models.user import User
from hostbaku.models.property import Property, PropertyUnit
from hostbaku.models.reservation import Reservation
from hostbaku.models.expense import Expense
from hostbaku.models.statement import OwnerStatement
