import uuid

from fastapi import APIRouter, Depends

from gamestore.api.deps import get_cart_service, get_checkout_service
from gamestore.core.security import Principal, require_user
from gamestore.schemas.cart import ShoppingCartOut
from gamestore.schemas.users import MessageOut
from gamestore.services.cart import CartService
from gamestore.services.checkout import CheckoutService

router = APIRouter()

@router.get("", response_model=ShoppingCartOut)
async def get_shopping_cart(
    user: Principal = Depends(require_user),
    carts: CartService = Depends(get_cart_service),
):
    cart = await carts.get_or_create_cart(user.user_id)
    return ShoppingCartOut.of(cart)

@router.post("/add-game/{game_id}", response_model=MessageOut)
async def add_game_to_shopping_cart(
    game_id: uuid.UUID,
    user: Principal = Depends(require_user),
    carts: CartService = Depends(get_cart_service),
):
    await carts.add_game(user.user_id, game_id)
    return MessageOut(message="Game added to shopping cart.")

@router.delete("/remove-game/{game_id}", response_model=MessageOut)
async def remove_game_from_shopping_cart(
    game_id: uuid.UUID,
    user: Principal = Depends(require_user),
    carts: CartService = Depends(get_cart_service),
):
    await carts.remove_game(user.user_id, game_id)
    return MessageOut(message="Game removed from shopping cart.")

@router.post("/remove-all", response_model=MessageOut)
async def remove_all_games_from_shopping_cart(
    user: Principal = Depends(require_user),
    carts: CartService = Depends(get_cart_service),
):
    await carts.clear(user.user_id)
    return MessageOut(message="All games removed from shopping cart.")

@router.post("/checkout")
async def checkout(
    user: Principal = Depends(require_user),
    checkout: CheckoutService = Depends(get_checkout_service),
):
    order = await checkout.checkout(user)
    return {"message": "Checkout successful.", "order_id": order.id}
