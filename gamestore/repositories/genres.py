from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from gamestore.db.models import Game, Genre


class GenreRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_all(self) -> list[Genre]:
        res = await self.db.execute(select(Genre).order_by(Genre.id))
        return list(res.scalars())

    async def get_by_id(self, genre_id: int) -> Genre | None:
        return await self.db.get(Genre, genre_id)

    async def get_by_name(self, name: str) -> Genre | None:
        res = await self.db.execute(select(Genre).where(Genre.name == name))
        return res.scalar_one_or_none()

    async def add(self, genre: Genre) -> Genre:
        self.db.add(genre)
        await self.db.flush()
        return genre

    async def delete(self, genre: Genre) -> None:
        await self.db.delete(genre)
        await self.db.flush()

    async def in_use(self, genre_id: int) -> bool:
        res = await self.db.execute(select(Game.id).where(Game.genre_id == genre_id).limit(1))
        return res.first() is not None
