"""
Checkout: turns a customer's cart into an order and library entitlements.

The cart goes Filled -> Emptied in a single commit together with the new
order and the customer's grown library. Per customer, checkouts are
serialized by an in-process lock and by a row lock on the cart, so one
filled cart yields at most one order. The confirmation email is sent after
the commit and its failure never undoes the purchase.
"""
import logging
import uuid

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from gamestore.core.errors import (
    AlreadyOwnedError, EmailDeliveryError, EmptyCartError, GameNotFoundError,
    NoCartToCheckoutError, UserNotFoundError,
)
from gamestore.core.locks import KeyedLocks, customer_locks
from gamestore.core.security import Principal
from gamestore.db.models import ApplicationUser, Game, Order, OrderStatus
from gamestore.repositories import CartRepository, GameRepository, UserRepository
from gamestore.services.notifications import EmailSender, order_confirmation_email
from gamestore.services.orders import OrderService

log = logging.getLogger("gamestore.checkout")


def grant_games(customer: ApplicationUser, games: list[Game]) -> list[Game]:
    """Add games to the customer's library, skipping ones already owned."""
    owned = {g.id for g in customer.owned_games}
    granted = []
    for game in games:
        if game.id in owned:
            continue
        customer.owned_games.append(game)
        owned.add(game.id)
        granted.append(game)
    return granted


class CheckoutService:
    def __init__(self, db: AsyncSession, notifier: EmailSender, locks: KeyedLocks = customer_locks):
        self.db = db
        self.notifier = notifier
        self.locks = locks
        self.users = UserRepository(db)
        self.carts = CartRepository(db)
        self.games = GameRepository(db)
        self.orders = OrderService(db)

    async def _customer(self, principal: Principal) -> ApplicationUser:
        customer = await self.users.find_by_id(principal.user_id, with_library=True)
        if customer is None:
            raise UserNotFoundError()
        return customer

    async def _commit(self, what: str, customer_id: str) -> None:
        try:
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            log.exception("%s for customer %s failed, rolled back", what, customer_id)
            raise

    async def checkout(self, principal: Principal) -> Order:
        async with self.locks.hold(principal.user_id):
            customer = await self._customer(principal)
            cart = await self.carts.get_by_customer(customer.id, for_update=True)
            if cart is None:
                raise NoCartToCheckoutError()
            if not cart.entries:
                raise EmptyCartError()

            games = cart.games
            total = cart.total_price
            order = await self.orders.create_order(customer, games, total, OrderStatus.APPROVED)
            granted = grant_games(customer, games)
            cart.entries.clear()
            await self._commit("Checkout", customer.id)

        log.info(
            "Checkout: order %s for customer %s, %d game(s), total %s, %d newly granted",
            order.id, customer.id, len(games), total, len(granted),
        )
        await self._notify(customer, order)
        return order

    async def add_single_game_to_library(self, principal: Principal, game_id: uuid.UUID) -> Order:
        async with self.locks.hold(principal.user_id):
            customer = await self._customer(principal)
            game = await self.games.get_by_id(game_id)
            if game is None:
                raise GameNotFoundError()
            if customer.owns(game.id):
                raise AlreadyOwnedError()

            order = await self.orders.create_order(customer, [game], game.price, OrderStatus.APPROVED)
            grant_games(customer, [game])
            await self._commit("Library purchase", customer.id)

        log.info("Library purchase: order %s, game %s for customer %s", order.id, game.id, customer.id)
        return order

    async def _notify(self, customer: ApplicationUser, order: Order) -> None:
        subject, body = order_confirmation_email(order, customer)
        try:
            await self.notifier.send_email(customer.email, subject, body)
        except EmailDeliveryError as e:
            log.warning("Order %s confirmation to %s not delivered: %s", order.id, customer.email, e)
