from datetime import datetime

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gamerec.core.database import Base


class UserGameAction(Base):
    """
    One live record per (user, game, action type).

    game_id is the catalog id, not the id of a cached row. Genres and tags
    are copied from the catalog at action time so preferences can be derived
    later without re-fetching the catalog.
    """

    __tablename__ = "user_game_actions"
    __table_args__ = (
        UniqueConstraint("user_id", "game_id", "action_type", name="unique_user_game_action"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True)
    game_id: Mapped[int] = mapped_column(Integer, index=True)
    game_name: Mapped[str | None] = mapped_column(String(500))

    action_type: Mapped[str] = mapped_column(String(30), index=True)

    # Only one of these is set, depending on action_type
    rating: Mapped[int | None] = mapped_column(Integer)  # 1-10, rate
    completion_status: Mapped[str | None] = mapped_column(String(20))  # status_change
    purchase_status: Mapped[str | None] = mapped_column(String(20))  # purchase_change

    # Denormalized [{id, name}] snapshots
    genres: Mapped[list] = mapped_column(JSON, default=list)
    tags: Mapped[list] = mapped_column(JSON, default=list)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    user: Mapped["User"] = relationship(back_populates="actions")


# Forward reference
from gamerec.models.user import User  # noqa: E402, F811
