import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from gamestore.db.models import Game, Order, ShoppingCart
from gamestore.schemas.catalog import Money

class CartGameOut(BaseModel):
    id: uuid.UUID
    title: str
    image_url: str
    price: Money

    @classmethod
    def of(cls, game: Game) -> "CartGameOut":
        return cls(id=game.id, title=game.title, image_url=game.image_url, price=game.price)

class ShoppingCartOut(BaseModel):
    id: uuid.UUID
    games: list[CartGameOut]
    total_price: Money
    item_count: int

    @classmethod
    def of(cls, cart: ShoppingCart) -> "ShoppingCartOut":
        return cls(
            id=cart.id,
            games=[CartGameOut.of(g) for g in cart.games],
            total_price=cart.total_price,
            item_count=cart.item_count,
        )

class OrderGameOut(BaseModel):
    id: Optional[uuid.UUID] = None
    title: str
    price: Money

class OrderOut(BaseModel):
    id: int
    bought_games: list[OrderGameOut]
    total_price: Money
    status: str
    order_date: datetime
    customer_name: str

    @classmethod
    def of(cls, order: Order) -> "OrderOut":
        return cls(
            id=order.id,
            bought_games=[
                OrderGameOut(id=i.game_id, title=i.title_snapshot, price=i.price_snapshot)
                for i in order.items
            ],
            total_price=order.total_price,
            status=order.status.value,
            order_date=order.order_date,
            customer_name=order.customer.full_name or order.customer.username,
        )
