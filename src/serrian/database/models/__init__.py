"""SQLAlchemy models for stored builds."""

from serrian.database.models.base import Base, TimestampMixin
from serrian.database.models.build_subject import BuildSubjectRecord

__all__ = [
    "Base",
    "TimestampMixin",
    "BuildSubjectRecord",
]
