from datetime import datetime

from sqlalchemy import DateTime, Float, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from gamerec.core.database import Base


class UserGenrePreference(Base):
    """Per-user affinity for a catalog genre. weight 1.0 is neutral."""

    __tablename__ = "user_genre_preferences"
    __table_args__ = (UniqueConstraint("user_id", "genre_id", name="unique_user_genre"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True)
    genre_id: Mapped[int] = mapped_column(Integer, index=True)
    genre_name: Mapped[str] = mapped_column(String(100))

    weight: Mapped[float] = mapped_column(Float, default=1.0, index=True)
    interaction_count: Mapped[int] = mapped_column(Integer, default=0)
    like_count: Mapped[int] = mapped_column(Integer, default=0)
    dislike_count: Mapped[int] = mapped_column(Integer, default=0)
    last_interaction: Mapped[datetime | None] = mapped_column(DateTime)


class UserTagPreference(Base):
    """Per-user affinity for a catalog tag. weight 1.0 is neutral."""

    __tablename__ = "user_tag_preferences"
    __table_args__ = (UniqueConstraint("user_id", "tag_id", name="unique_user_tag"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True)
    tag_id: Mapped[int] = mapped_column(Integer, index=True)
    tag_name: Mapped[str] = mapped_column(String(100))

    weight: Mapped[float] = mapped_column(Float, default=1.0, index=True)
    interaction_count: Mapped[int] = mapped_column(Integer, default=0)
    like_count: Mapped[int] = mapped_column(Integer, default=0)
    dislike_count: Mapped[int] = mapped_column(Integer, default=0)
    last_interaction: Mapped[datetime | None] = mapped_column(DateTime)
