from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

CompletionStatus = Literal["not_played", "playing", "completed", "dropped"]
PurchaseStatus = Literal["owned", "not_owned", "want_to_buy"]


class RateGameRequest(BaseModel):
    rating: int = Field(..., ge=1, le=10)
    comment: str | None = None  # accepted for compatibility, not stored


class GameStatusRequest(BaseModel):
    status: CompletionStatus


class GamePurchaseRequest(BaseModel):
    purchase: PurchaseStatus


class ActionResponse(BaseModel):
    id: int
    user_id: int
    game_id: int
    game_name: str | None
    action_type: str
    rating: int | None
    completion_status: str | None
    purchase_status: str | None
    genres: list
    tags: list
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ActionResult(BaseModel):
    success: bool = True
    updated: bool
    action: ActionResponse


class UserGameActions(BaseModel):
    """Everything one user has recorded about one game, flattened."""

    liked: bool = False
    disliked: bool = False
    in_wishlist: bool = False
    rating: int | None = None
    completion_status: CompletionStatus = "not_played"
    purchase_status: PurchaseStatus = "not_owned"
