import uuid

from fastapi import APIRouter, Depends, status

from gamestore.api.deps import get_catalog_service
from gamestore.core.security import Principal, require_user
from gamestore.schemas.catalog import AddCommentRequest, CommentOut, GameOut
from gamestore.services.catalog import CatalogService

router = APIRouter()

@router.get("", response_model=list[GameOut])
async def get_all_games(catalog: CatalogService = Depends(get_catalog_service)):
    return [GameOut.of(g) for g in await catalog.list_games()]

@router.get("/{game_id}", response_model=GameOut)
async def get_game_by_id(game_id: uuid.UUID, catalog: CatalogService = Depends(get_catalog_service)):
    return GameOut.of(await catalog.get_game(game_id))

@router.get("/game-details/comments/{game_id}", response_model=list[CommentOut])
async def get_game_comments(game_id: uuid.UUID, catalog: CatalogService = Depends(get_catalog_service)):
    return [CommentOut.of(c) for c in await catalog.comments(game_id)]

@router.post("/game-details/comment/add", response_model=CommentOut, status_code=status.HTTP_201_CREATED)
async def add_comment(
    body: AddCommentRequest,
    user: Principal = Depends(require_user),
    catalog: CatalogService = Depends(get_catalog_service),
):
    return CommentOut.of(await catalog.add_comment(user, body))
