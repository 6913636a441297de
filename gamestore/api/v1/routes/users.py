import logging
import uuid

from fastapi import APIRouter, Depends, File, Request, UploadFile

from gamestore.api.deps import get_account_service, get_checkout_service, get_order_service
from gamestore.core.errors import ValidationFailedError
from gamestore.core.security import Principal, require_user
from gamestore.schemas.cart import OrderOut
from gamestore.schemas.users import (
    ChangePasswordRequest, EditProfileRequest, FileUrlOut, MessageOut, OwnedGameOut,
)
from gamestore.services.accounts import AccountService
from gamestore.services.checkout import CheckoutService
from gamestore.services.media import MediaStore, get_media_store
from gamestore.services.orders import OrderService

log = logging.getLogger("gamestore.api.users")

router = APIRouter()

# ------- orders -------
@router.get("/orders", response_model=list[OrderOut])
async def get_orders(
    user: Principal = Depends(require_user),
    orders: OrderService = Depends(get_order_service),
):
    return [OrderOut.of(o) for o in await orders.get_orders_for_customer(user.user_id)]

@router.get("/order/{order_id}", response_model=OrderOut)
async def get_order(
    order_id: int,
    user: Principal = Depends(require_user),
    orders: OrderService = Depends(get_order_service),
):
    return OrderOut.of(await orders.get_order(order_id, principal=user))

# ------- library -------
@router.get("/library", response_model=list[OwnedGameOut])
async def get_library(
    user: Principal = Depends(require_user),
    accounts: AccountService = Depends(get_account_service),
):
    return [OwnedGameOut.of(g) for g in await accounts.library(user)]

@router.post("/library/add-game/{game_id}", response_model=MessageOut)
async def add_game_to_library(
    game_id: uuid.UUID,
    user: Principal = Depends(require_user),
    checkout: CheckoutService = Depends(get_checkout_service),
):
    await checkout.add_single_game_to_library(user, game_id)
    return MessageOut(message="Game added to library.")

# ------- profile -------
@router.post("/edit-profile", response_model=MessageOut)
async def edit_profile(
    body: EditProfileRequest,
    user: Principal = Depends(require_user),
    accounts: AccountService = Depends(get_account_service),
):
    await accounts.edit_profile(user, body)
    return MessageOut(message="Profile updated successfully.")

@router.post("/change-password", response_model=MessageOut)
async def change_password(
    body: ChangePasswordRequest,
    user: Principal = Depends(require_user),
    accounts: AccountService = Depends(get_account_service),
):
    await accounts.change_password(user, body.password, body.new_password)
    return MessageOut(message="Password changed successfully.")

@router.post("/profile/image-upload", response_model=FileUrlOut)
async def upload_image(
    request: Request,
    file: UploadFile = File(...),
    user: Principal = Depends(require_user),
    accounts: AccountService = Depends(get_account_service),
    store: MediaStore = Depends(get_media_store),
):
    log.info("Request received from: %s", request.client.host if request.client else "unknown")
    if not file.filename or file.size == 0:
        log.warning("Invalid file provided.")
        raise ValidationFailedError("Please provide a valid file.")
    url = await accounts.upload_profile_picture(user, file.file, file.filename, store)
    return FileUrlOut(file_url=url)
