from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from gamestore.db.models import ApplicationUser, Game, Order, OrderItem, OrderStatus, utcnow


class OrderRepository:
    """Append-only store of orders: no update, no delete."""

    def __init__(self, db: AsyncSession):
        self.db = db

    def _query(self):
        return select(Order).options(selectinload(Order.items), selectinload(Order.customer))

    async def add(self, customer: ApplicationUser, games: list[Game], total_price: Decimal, status: OrderStatus) -> Order:
        order = Order(
            customer=customer,
            total_price=total_price,
            status=status,
            order_date=utcnow(),
            items=[
                OrderItem(game_id=g.id, title_snapshot=g.title, price_snapshot=g.price)
                for g in games
            ],
        )
        self.db.add(order)
        await self.db.flush()
        return order

    async def get_by_id(self, order_id: int) -> Order | None:
        res = await self.db.execute(self._query().where(Order.id == order_id))
        return res.scalar_one_or_none()

    async def get_by_customer(self, customer_id: str) -> list[Order]:
        res = await self.db.execute(
            self._query().where(Order.customer_id == customer_id).order_by(Order.order_date, Order.id)
        )
        return list(res.scalars())

    async def get_all(self) -> list[Order]:
        res = await self.db.execute(self._query().order_by(Order.order_date, Order.id))
        return list(res.scalars())
