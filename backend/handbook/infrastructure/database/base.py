"""SQLAlchemy ORM base shared by the article tables."""

from datetime import datetime

from sqlalchemy import DateTime
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy ORM models.

    ``Mapped[datetime]`` columns are stored timezone-aware on every backend.
    """

    type_annotation_map = {
        datetime: DateTime(timezone=True),
    }
