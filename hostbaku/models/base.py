"""Declarative base shared by all models."""

from datetime import datetime

import pytz
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def utcnow():
    """Timezone-aware UTC timestamp for column defaults."""
    return datetime.now(pytz.UTC)
