import os

# must be set before gamestore.core.config is imported
os.environ["DB_URL"] = "sqlite+aiosqlite://"
os.environ.setdefault("SECRET_KEY", "test-secret-key")

from datetime import date
from decimal import Decimal

import httpx
import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from gamestore.core.errors import EmailDeliveryError
from gamestore.core.security import Principal, hash_password, make_token
from gamestore.db.models import ApplicationUser, Game, Genre, RoleName
from gamestore.db.seed import create_schema, seed_genres
from gamestore.db.session import get_db
from gamestore.main import app
from gamestore.services.media import MediaStore, get_media_store, get_optional_media_store
from gamestore.services.notifications import EmailSender, get_email_sender

PASSWORD = "Secret#123"


class FakeEmailSender(EmailSender):
    def __init__(self):
        self.sent = []
        self.fail = False

    async def send_email(self, to, subject, html_body):
        if self.fail:
            raise EmailDeliveryError("mail server down")
        self.sent.append((to, subject, html_body))


class FakeMediaStore(MediaStore):
    def __init__(self):
        self.uploads = []

    async def upload(self, stream, filename, folder):
        self.uploads.append((folder, filename, stream.read()))
        return f"https://media.example.com/{folder}/{filename}"


@pytest.fixture
async def engine():
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    await create_schema(engine)
    yield engine
    await engine.dispose()

@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False, autoflush=False)

@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


# ------- data -------
@pytest.fixture
async def genre(db):
    await seed_genres(db)
    rpg = (await db.execute(select(Genre).where(Genre.name == "RPG"))).scalar_one()
    await db.commit()
    return rpg

@pytest.fixture
def make_game(db, genre):
    async def _make(title: str, price: str) -> Game:
        game = Game(
            title=title,
            description="A game made for tests.",
            image_url="https://img.example.com/cover.png",
            release_date=date(2020, 1, 1),
            publisher="Test Studio",
            price=Decimal(price),
            genre=genre,
        )
        db.add(game)
        await db.commit()
        return game
    return _make

@pytest.fixture
async def game_a(make_game):
    return await make_game("Alpha Quest", "10.00")

@pytest.fixture
async def game_b(make_game):
    return await make_game("Beta Strike", "15.00")

@pytest.fixture
def make_user(db):
    async def _make(username: str, role: RoleName = RoleName.USER, confirmed: bool = True) -> ApplicationUser:
        user = ApplicationUser(
            username=username,
            email=f"{username}@example.com",
            hashed_password=hash_password(PASSWORD),
            first_name="Test",
            last_name=username.capitalize(),
            age=30,
            role=role,
            email_confirmed=confirmed,
        )
        db.add(user)
        await db.commit()
        return user
    return _make

@pytest.fixture
async def customer(make_user):
    return await make_user("alice")

@pytest.fixture
async def other_customer(make_user):
    return await make_user("bob")

@pytest.fixture
async def admin(make_user):
    return await make_user("root", role=RoleName.ADMIN)


# ------- identity -------
@pytest.fixture
def principal_of():
    def _principal(user: ApplicationUser) -> Principal:
        return Principal(user_id=user.id, username=user.username, role=user.role)
    return _principal

@pytest.fixture
def auth():
    def _headers(user: ApplicationUser) -> dict:
        return {"Authorization": f"Bearer {make_token(user)}"}
    return _headers


# ------- collaborators & app -------
@pytest.fixture
def notifier():
    return FakeEmailSender()

@pytest.fixture
def media():
    return FakeMediaStore()

@pytest.fixture
async def client(session_factory, notifier, media):
    async def _get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_email_sender] = lambda: notifier
    app.dependency_overrides[get_media_store] = lambda: media
    app.dependency_overrides[get_optional_media_store] = lambda: media
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()
