from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from gamestore.db.models import CartEntry, ShoppingCart


class CartRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_customer(self, customer_id: str, for_update: bool = False) -> ShoppingCart | None:
        stmt = (
            select(ShoppingCart)
            .where(ShoppingCart.customer_id == customer_id)
            .options(selectinload(ShoppingCart.entries).selectinload(CartEntry.game))
            .execution_options(populate_existing=True)
        )
        if for_update:
            stmt = stmt.with_for_update()
        res = await self.db.execute(stmt)
        return res.scalar_one_or_none()

    async def create(self, customer_id: str) -> ShoppingCart:
        cart = ShoppingCart(customer_id=customer_id, entries=[])
        self.db.add(cart)
        await self.db.flush()
        return cart
