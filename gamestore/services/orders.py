from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from gamestore.core.errors import OrderNotFoundError
from gamestore.core.security import Principal
from gamestore.db.models import ApplicationUser, Game, Order, OrderStatus
from gamestore.repositories import OrderRepository


class OrderService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.orders = OrderRepository(db)

    async def create_order(
        self,
        customer: ApplicationUser,
        games: list[Game],
        total_price: Decimal,
        status: OrderStatus = OrderStatus.APPROVED,
    ) -> Order:
        """Stage a new order. The caller commits, so it can join a larger transaction."""
        return await self.orders.add(customer, games, total_price, status)

    async def get_order(self, order_id: int, principal: Principal | None = None) -> Order:
        order = await self.orders.get_by_id(order_id)
        if order is None:
            raise OrderNotFoundError()
        # other customers' orders are reported as missing
        if principal is not None and not principal.is_admin and order.customer_id != principal.user_id:
            raise OrderNotFoundError()
        return order

    async def get_orders_for_customer(self, customer_id: str) -> list[Order]:
        return await self.orders.get_by_customer(customer_id)

    async def get_all_orders(self) -> list[Order]:
        return await self.orders.get_all()
