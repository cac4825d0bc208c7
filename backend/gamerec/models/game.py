from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, Float, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from gamerec.core.database import Base


class CachedGame(Base):
    """
    Local shadow copy of a catalog game, keyed by the catalog (RAWG) id.

    Written opportunistically when games are browsed; never invalidated on
    a schedule and never treated as the source of truth.
    """

    __tablename__ = "games"

    id: Mapped[int] = mapped_column(primary_key=True)
    rawg_id: Mapped[int] = mapped_column(Integer, unique=True, index=True)

    name: Mapped[str] = mapped_column(String(500), index=True)
    slug: Mapped[str | None] = mapped_column(String(500))
    released: Mapped[str | None] = mapped_column(String(20))
    description: Mapped[str | None] = mapped_column(Text)
    background_image: Mapped[str | None] = mapped_column(String(1000))
    website: Mapped[str | None] = mapped_column(String(1000))

    # Catalog scores
    rating: Mapped[float | None] = mapped_column(Float)
    rating_top: Mapped[int | None] = mapped_column(Integer)
    metacritic: Mapped[int | None] = mapped_column(Integer)
    playtime: Mapped[int | None] = mapped_column(Integer)

    # Raw catalog arrays
    genres: Mapped[list | None] = mapped_column(JSON)
    tags: Mapped[list | None] = mapped_column(JSON)
    platforms: Mapped[list | None] = mapped_column(JSON)
    developers: Mapped[list | None] = mapped_column(JSON)
    publishers: Mapped[list | None] = mapped_column(JSON)

    is_cached: Mapped[bool] = mapped_column(Boolean, default=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )
