import asyncio

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from gamerec.core.database import get_db
from gamerec.core.errors import CatalogAPIError
from gamerec.schemas.game import (
    ActionResponse,
    ActionResult,
    GamePurchaseRequest,
    GameStatusRequest,
    RateGameRequest,
    UserGameActions,
)
from gamerec.services import auth_service, game_cache_service, preference_service
from gamerec.services.catalog_client import RawgClient, get_catalog_client

router = APIRouter()

SIMPLE_ACTIONS = ("like", "dislike", "wishlist")


async def _fetch_game(catalog: RawgClient, game_id: int) -> dict:
    try:
        return await catalog.get_game(game_id)
    except CatalogAPIError as e:
        if e.status_code == status.HTTP_404_NOT_FOUND:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Game not found",
            )
        raise


def _action_result(action, updated: bool) -> ActionResult:
    return ActionResult(updated=updated, action=ActionResponse.model_validate(action))


@router.get("")
async def list_games(
    background_tasks: BackgroundTasks,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=40, alias="pageSize"),
    search: str | None = None,
    ordering: str = "-rating",
    genres: str | None = None,
    platforms: str | None = None,
    tags: str | None = None,
    dates: str | None = None,
    developers: str | None = None,
    publishers: str | None = None,
    db: Session = Depends(get_db),
    catalog: RawgClient = Depends(get_catalog_client),
):
    """
    Browse the catalog.

    Each result is flagged with ``is_cached``; the page is written to the
    local cache after the response is sent.
    """
    data = await catalog.list_games(
        page=page,
        page_size=page_size,
        search=search,
        ordering=ordering,
        genres=genres,
        platforms=platforms,
        tags=tags,
        dates=dates,
        developers=developers,
        publishers=publishers,
    )

    results = data["results"]
    if results:
        background_tasks.add_task(game_cache_service.cache_games_in_background, results)

    return {**data, "results": game_cache_service.annotate_cached(db, results)}


@router.get("/metadata/genres")
async def get_genres(catalog: RawgClient = Depends(get_catalog_client)):
    return await catalog.get_genres()


@router.get("/metadata/platforms")
async def get_platforms(catalog: RawgClient = Depends(get_catalog_client)):
    return await catalog.get_platforms()


@router.get("/metadata/all")
async def get_all_metadata(catalog: RawgClient = Depends(get_catalog_client)):
    genres, platforms = await asyncio.gather(catalog.get_genres(), catalog.get_platforms())
    return {"genres": genres, "platforms": platforms}


@router.get("/{game_id}")
async def get_game(
    game_id: int,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    catalog: RawgClient = Depends(get_catalog_client),
):
    """Game detail from the catalog, cached in the background."""
    game = await _fetch_game(catalog, game_id)
    is_cached = bool(game_cache_service.get_cached_ids(db, [game_id]))
    background_tasks.add_task(game_cache_service.cache_game_in_background, game)
    return {**game, "is_cached": is_cached}


@router.get("/{game_id}/user-actions", response_model=UserGameActions)
async def get_user_actions(
    game_id: int,
    current_user=Depends(auth_service.get_current_user),
    db: Session = Depends(get_db),
):
    """Everything the current user has recorded for this game."""
    return preference_service.get_user_game_actions(db, current_user.id, game_id)


@router.post("/{game_id}/rate", response_model=ActionResult)
async def rate_game(
    game_id: int,
    body: RateGameRequest,
    current_user=Depends(auth_service.get_current_user),
    db: Session = Depends(get_db),
    catalog: RawgClient = Depends(get_catalog_client),
):
    game = await _fetch_game(catalog, game_id)
    action, updated = preference_service.record_rating(db, current_user.id, game, body.rating)
    return _action_result(action, updated)


@router.delete("/{game_id}/rate")
async def remove_rating(
    game_id: int,
    current_user=Depends(auth_service.get_current_user),
    db: Session = Depends(get_db),
):
    preference_service.remove_action(db, current_user.id, game_id, "rate")
    return {"success": True}


@router.post("/{game_id}/status", response_model=ActionResult)
async def set_completion_status(
    game_id: int,
    body: GameStatusRequest,
    current_user=Depends(auth_service.get_current_user),
    db: Session = Depends(get_db),
    catalog: RawgClient = Depends(get_catalog_client),
):
    game = await _fetch_game(catalog, game_id)
    action, updated = preference_service.record_completion_status(
        db, current_user.id, game, body.status
    )
    return _action_result(action, updated)


@router.post("/{game_id}/purchase", response_model=ActionResult)
async def set_purchase_status(
    game_id: int,
    body: GamePurchaseRequest,
    current_user=Depends(auth_service.get_current_user),
    db: Session = Depends(get_db),
    catalog: RawgClient = Depends(get_catalog_client),
):
    game = await _fetch_game(catalog, game_id)
    action, updated = preference_service.record_purchase_status(
        db, current_user.id, game, body.purchase
    )
    return _action_result(action, updated)


def _register_simple_action(action_type: str) -> None:
    async def add_action(
        game_id: int,
        current_user=Depends(auth_service.get_current_user),
        db: Session = Depends(get_db),
        catalog: RawgClient = Depends(get_catalog_client),
    ):
        game = await _fetch_game(catalog, game_id)
        action, updated = preference_service.record_action(db, current_user.id, game, action_type)
        return _action_result(action, updated)

    async def delete_action(
        game_id: int,
        current_user=Depends(auth_service.get_current_user),
        db: Session = Depends(get_db),
    ):
        preference_service.remove_action(db, current_user.id, game_id, action_type)
        return {"success": True}

    router.add_api_route(
        f"/{{game_id}}/{action_type}",
        add_action,
        methods=["POST"],
        response_model=ActionResult,
        name=f"add_{action_type}",
    )
    router.add_api_route(
        f"/{{game_id}}/{action_type}",
        delete_action,
        methods=["DELETE"],
        name=f"remove_{action_type}",
    )


for _action_type in SIMPLE_ACTIONS:
    _register_simple_action(_action_type)
