import uuid

from fastapi import APIRouter, Depends, status

from gamestore.api.deps import get_account_service, get_admin_catalog_service, get_order_service
from gamestore.core.security import require_admin
from gamestore.db.models import RoleName
from gamestore.schemas.cart import OrderOut
from gamestore.schemas.catalog import AddGameRequest, GameOut, GenreOut, GenreRequest
from gamestore.schemas.users import MessageOut, UserOut
from gamestore.services.accounts import AccountService
from gamestore.services.catalog import CatalogService
from gamestore.services.orders import OrderService

# every route here needs the Admin role
router = APIRouter(dependencies=[Depends(require_admin)])

# ------- users -------
@router.get("/users", response_model=list[UserOut])
async def get_users(accounts: AccountService = Depends(get_account_service)):
    return [UserOut.of(u) for u in await accounts.list_users()]

@router.post("/user/enable/{user_id}", response_model=MessageOut)
async def enable_user(user_id: str, accounts: AccountService = Depends(get_account_service)):
    await accounts.set_confirmed(user_id, True)
    return MessageOut(message="User enabled.")

@router.post("/user/disable/{user_id}", response_model=MessageOut)
async def disable_user(user_id: str, accounts: AccountService = Depends(get_account_service)):
    await accounts.set_confirmed(user_id, False)
    return MessageOut(message="User disabled.")

@router.post("/user/promote/{user_id}", response_model=MessageOut)
async def promote_user(user_id: str, accounts: AccountService = Depends(get_account_service)):
    await accounts.set_role(user_id, RoleName.ADMIN)
    return MessageOut(message="User promoted to Admin.")

@router.post("/user/demote/{user_id}", response_model=MessageOut)
async def demote_user(user_id: str, accounts: AccountService = Depends(get_account_service)):
    await accounts.set_role(user_id, RoleName.USER)
    return MessageOut(message="User demoted to User.")

# ------- games -------
@router.post("/add-game", response_model=GameOut, status_code=status.HTTP_201_CREATED)
async def add_game(body: AddGameRequest, catalog: CatalogService = Depends(get_admin_catalog_service)):
    return GameOut.of(await catalog.add_game(body))

@router.put("/update-game/{game_id}", response_model=GameOut)
async def update_game(
    game_id: uuid.UUID,
    body: AddGameRequest,
    catalog: CatalogService = Depends(get_admin_catalog_service),
):
    return GameOut.of(await catalog.update_game(game_id, body))

@router.delete("/delete-game/{game_id}", response_model=MessageOut)
async def delete_game(game_id: uuid.UUID, catalog: CatalogService = Depends(get_admin_catalog_service)):
    await catalog.delete_game(game_id)
    return MessageOut(message="Game deleted.")

# ------- genres -------
@router.get("/genres", response_model=list[GenreOut])
async def get_genres(catalog: CatalogService = Depends(get_admin_catalog_service)):
    return [GenreOut.of(g) for g in await catalog.list_genres()]

@router.post("/add-genre", response_model=GenreOut, status_code=status.HTTP_201_CREATED)
async def add_genre(body: GenreRequest, catalog: CatalogService = Depends(get_admin_catalog_service)):
    return GenreOut.of(await catalog.add_genre(body))

@router.get("/genre/{genre_id}", response_model=GenreOut)
async def get_genre(genre_id: int, catalog: CatalogService = Depends(get_admin_catalog_service)):
    return GenreOut.of(await catalog.get_genre(genre_id))

@router.put("/update-genre/{genre_id}", response_model=GenreOut)
async def update_genre(
    genre_id: int,
    body: GenreRequest,
    catalog: CatalogService = Depends(get_admin_catalog_service),
):
    return GenreOut.of(await catalog.update_genre(genre_id, body))

@router.delete("/delete-genre/{genre_id}", response_model=MessageOut)
async def delete_genre(genre_id: int, catalog: CatalogService = Depends(get_admin_catalog_service)):
    await catalog.delete_genre(genre_id)
    return MessageOut(message="Genre deleted.")

# ------- orders -------
@router.get("/orders", response_model=list[OrderOut])
async def get_orders(orders: OrderService = Depends(get_order_service)):
    return [OrderOut.of(o) for o in await orders.get_all_orders()]
