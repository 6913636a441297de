import uuid

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from gamestore.db.models import CartEntry, Comment, Game, OrderItem, users_games


class GameRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, game_id: uuid.UUID) -> Game | None:
        res = await self.db.execute(
            select(Game).where(Game.id == game_id).options(selectinload(Game.genre))
        )
        return res.scalar_one_or_none()

    async def get_all(self) -> list[Game]:
        res = await self.db.execute(
            select(Game).options(selectinload(Game.genre)).order_by(Game.title)
        )
        return list(res.scalars())

    async def add(self, game: Game) -> Game:
        self.db.add(game)
        await self.db.flush()
        return game

    async def delete(self, game: Game) -> None:
        # Carts, libraries and comments lose the game; order lines keep their snapshot.
        await self.db.execute(delete(CartEntry).where(CartEntry.game_id == game.id))
        await self.db.execute(delete(users_games).where(users_games.c.game_id == game.id))
        await self.db.execute(delete(Comment).where(Comment.game_id == game.id))
        await self.db.execute(
            update(OrderItem).where(OrderItem.game_id == game.id).values(game_id=None)
        )
        await self.db.delete(game)
        await self.db.flush()

    async def get_comments(self, game_id: uuid.UUID) -> list[Comment]:
        res = await self.db.execute(
            select(Comment)
            .where(Comment.game_id == game_id)
            .options(selectinload(Comment.author))
            .order_by(Comment.created_at)
        )
        return list(res.scalars())

    async def add_comment(self, comment: Comment) -> Comment:
        self.db.add(comment)
        await self.db.flush()
        return comment
