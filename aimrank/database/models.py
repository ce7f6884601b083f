from datetime import datetime

from sqlalchemy import String, Text, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from .session import Base
from aimrank.utils import utc_now


class KeyValue(Base):
    """One persisted value (rating, stats or leaderboard) as UTF-8 text."""
    __tablename__ = "kv_store"
    key: Mapped[str] = mapped_column(String(64), primary_key=True)
    value: Mapped[str] = mapped_column(Text)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)
