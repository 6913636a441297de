from sqlalchemy import case, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from gamestore.db.models import ApplicationUser, Game, RoleName


class UserRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_by_id(self, user_id: str, with_library: bool = False) -> ApplicationUser | None:
        stmt = select(ApplicationUser).where(ApplicationUser.id == user_id)
        if with_library:
            stmt = stmt.options(
                selectinload(ApplicationUser.owned_games).selectinload(Game.genre)
            ).execution_options(populate_existing=True)
        res = await self.db.execute(stmt)
        return res.scalar_one_or_none()

    async def find_by_name(self, username: str) -> ApplicationUser | None:
        res = await self.db.execute(select(ApplicationUser).where(ApplicationUser.username == username))
        return res.scalar_one_or_none()

    async def find_by_email(self, email: str) -> ApplicationUser | None:
        res = await self.db.execute(
            select(ApplicationUser).where(ApplicationUser.email == email.lower())
        )
        return res.scalar_one_or_none()

    async def list_all(self) -> list[ApplicationUser]:
        admins_first = case((ApplicationUser.role == RoleName.ADMIN, 0), else_=1)
        res = await self.db.execute(select(ApplicationUser).order_by(admins_first, ApplicationUser.username))
        return list(res.scalars())

    async def add(self, user: ApplicationUser) -> ApplicationUser:
        self.db.add(user)
        await self.db.flush()
        return user

    async def update(self, user: ApplicationUser) -> ApplicationUser:
        self.db.add(user)
        await self.db.flush()
        return user
