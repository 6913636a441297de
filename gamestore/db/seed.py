import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from gamestore.core.config import settings
from gamestore.core.security import hash_password
from gamestore.db.models import ApplicationUser, Genre, RoleName
from gamestore.db.session import Base

log = logging.getLogger("gamestore.seed")

GENRES = [
    ("Action", "The player overcomes challenges by physical means such as precise aim and quick response times."),
    ("Adventure", "The player assumes the role of a protagonist in an interactive story, driven by exploration and/or puzzle-solving."),
    ("RPG", "Role-playing games where players engage with the game world through characters who have backstories and existing motivations."),
    ("Simulation", "Games designed to mimic activities you'd see in the real world, from fishing to running a farm or a theme park."),
    ("Strategy", "Players succeed (or lose) based on strategic decisions, not luck."),
    ("Sports", "Games that simulate playing real-world sports, from team sports to track and field."),
    ("MMO", "Massively multiplayer online games played by hundreds or thousands of players with no overall winner."),
]

async def create_schema(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

async def seed_genres(db: AsyncSession) -> int:
    """Insert the fixed genre set if the table is empty. Returns how many were added."""
    count = (await db.execute(select(func.count()).select_from(Genre))).scalar() or 0
    if count > 0:
        return 0
    for name, description in GENRES:
        db.add(Genre(name=name, description=description))
    await db.commit()
    log.info("Seeded %d genres", len(GENRES))
    return len(GENRES)

async def seed_admin(db: AsyncSession) -> ApplicationUser | None:
    if not settings.ADMIN_PASSWORD:
        log.info("ADMIN_PASSWORD not set, skipping default admin account")
        return None
    existing = (await db.execute(
        select(ApplicationUser).where(ApplicationUser.username == settings.ADMIN_USERNAME)
    )).scalar_one_or_none()
    if existing is not None:
        log.info("Default admin account already exists.")
        return existing
    admin = ApplicationUser(
        username=settings.ADMIN_USERNAME,
        email=settings.ADMIN_EMAIL.lower(),
        hashed_password=hash_password(settings.ADMIN_PASSWORD),
        first_name="Store",
        last_name="Admin",
        role=RoleName.ADMIN,
        email_confirmed=True,
    )
    db.add(admin)
    await db.commit()
    log.info("Default admin account created.")
    return admin
