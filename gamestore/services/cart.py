import logging
import uuid

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from gamestore.core.errors import AlreadyInCartError, CartNotFoundError, GameNotFoundError, NotInCartError
from gamestore.db.models import CartEntry, ShoppingCart
from gamestore.repositories import CartRepository, GameRepository

log = logging.getLogger("gamestore.cart")


class CartService:
    """One live cart per customer; totals are derived from the current entries."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.carts = CartRepository(db)
        self.games = GameRepository(db)

    async def get_or_create_cart(self, customer_id: str) -> ShoppingCart:
        cart = await self.carts.get_by_customer(customer_id)
        if cart is not None:
            return cart
        try:
            cart = await self.carts.create(customer_id)
            await self.db.commit()
        except IntegrityError:
            # another request created it first
            await self.db.rollback()
            return await self._require_cart(customer_id)
        log.info("Created shopping cart %s for customer %s", cart.id, customer_id)
        return cart

    async def _require_cart(self, customer_id: str) -> ShoppingCart:
        cart = await self.carts.get_by_customer(customer_id)
        if cart is None:
            raise CartNotFoundError()
        return cart

    async def add_game(self, customer_id: str, game_id: uuid.UUID) -> ShoppingCart:
        game = await self.games.get_by_id(game_id)
        if game is None:
            raise GameNotFoundError()
        cart = await self.get_or_create_cart(customer_id)
        if game.id in cart.game_ids:
            raise AlreadyInCartError()
        cart.entries.append(CartEntry(game=game))
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise AlreadyInCartError()
        return cart

    async def remove_game(self, customer_id: str, game_id: uuid.UUID) -> ShoppingCart:
        cart = await self._require_cart(customer_id)
        entry = next((e for e in cart.entries if e.game_id == game_id), None)
        if entry is None:
            raise NotInCartError()
        cart.entries.remove(entry)
        await self.db.commit()
        return cart

    async def clear(self, customer_id: str) -> ShoppingCart:
        cart = await self._require_cart(customer_id)
        cart.entries.clear()
        await self.db.commit()
        return cart
