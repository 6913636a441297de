import enum
import uuid
from datetime import date, datetime, timezone
from decimal import Decimal

from sqlalchemy import (
    Boolean, CheckConstraint, Column, Date, DateTime, Enum, ForeignKey, Integer,
    Numeric, String, Table, Text, UniqueConstraint, Uuid, event,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gamestore.db.session import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_security_stamp() -> str:
    return uuid.uuid4().hex


class RoleName(str, enum.Enum):
    USER = "User"
    ADMIN = "Admin"


class OrderStatus(str, enum.Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    CANCELLED = "Cancelled"


# Library: a user owns each game at most once
users_games = Table(
    "users_games",
    Base.metadata,
    Column("user_id", ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("game_id", ForeignKey("games.id", ondelete="CASCADE"), primary_key=True),
)


class Genre(Base):
    __tablename__ = "genres"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)
    description: Mapped[str] = mapped_column(String(500), nullable=False)


class Game(Base):
    __tablename__ = "games"
    __table_args__ = (CheckConstraint("price >= 0", name="ck_games_price_non_negative"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(30), nullable=False, index=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    image_url: Mapped[str] = mapped_column(String(2048), nullable=False)
    video_url: Mapped[str | None] = mapped_column(String(2048))
    release_date: Mapped[date] = mapped_column(Date, nullable=False)
    publisher: Mapped[str] = mapped_column(String(20), nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    genre_id: Mapped[int] = mapped_column(ForeignKey("genres.id"), nullable=False)

    genre: Mapped[Genre] = relationship(lazy="raise")


class ApplicationUser(Base):
    __tablename__ = "users"
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    username: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    first_name: Mapped[str] = mapped_column(String(20), default="")
    last_name: Mapped[str] = mapped_column(String(20), default="")
    age: Mapped[int] = mapped_column(Integer, default=0)
    role: Mapped[RoleName] = mapped_column(Enum(RoleName), default=RoleName.USER, nullable=False)
    profile_picture_url: Mapped[str] = mapped_column(String(2048), default="")
    email_confirmed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    # rotated to revoke outstanding tokens
    security_stamp: Mapped[str] = mapped_column(String(32), default=new_security_stamp, nullable=False)

    owned_games: Mapped[list[Game]] = relationship(secondary=users_games, lazy="raise")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def owns(self, game_id: uuid.UUID) -> bool:
        return any(g.id == game_id for g in self.owned_games)

    def rotate_security_stamp(self) -> None:
        self.security_stamp = new_security_stamp()


class ShoppingCart(Base):
    __tablename__ = "shopping_carts"
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    customer_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False
    )

    entries: Mapped[list["CartEntry"]] = relationship(
        back_populates="cart",
        cascade="all, delete-orphan",
        order_by="CartEntry.id",
        lazy="raise",
    )

    @property
    def games(self) -> list[Game]:
        return [e.game for e in self.entries]

    @property
    def game_ids(self) -> list[uuid.UUID]:
        return [e.game_id for e in self.entries]

    @property
    def total_price(self) -> Decimal:
        return sum((e.game.price for e in self.entries), Decimal("0"))

    @property
    def item_count(self) -> int:
        return len(self.entries)


class CartEntry(Base):
    __tablename__ = "shopping_carts_games"
    __table_args__ = (UniqueConstraint("cart_id", "game_id", name="uq_cart_game"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    cart_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("shopping_carts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    game_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("games.id", ondelete="CASCADE"), nullable=False
    )

    cart: Mapped[ShoppingCart] = relationship(back_populates="entries", lazy="raise")
    game: Mapped[Game] = relationship(lazy="raise")


class Order(Base):
    __tablename__ = "orders"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    customer_id: Mapped[str] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    total_price: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    status: Mapped[OrderStatus] = mapped_column(Enum(OrderStatus), nullable=False)
    order_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    items: Mapped[list["OrderItem"]] = relationship(
        back_populates="order", cascade="all, delete-orphan", order_by="OrderItem.id", lazy="raise"
    )
    customer: Mapped[ApplicationUser] = relationship(lazy="raise")


class OrderItem(Base):
    """Frozen copy of a purchased game; the live game link is dropped if the game is deleted."""
    __tablename__ = "order_items"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    order_id: Mapped[int] = mapped_column(ForeignKey("orders.id", ondelete="CASCADE"), nullable=False)
    game_id: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("games.id", ondelete="SET NULL"))
    title_snapshot: Mapped[str] = mapped_column(String(255), nullable=False)
    price_snapshot: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)

    order: Mapped[Order] = relationship(back_populates="items", lazy="raise")


class Comment(Base):
    __tablename__ = "comments"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    author_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    game_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("games.id", ondelete="CASCADE"), nullable=False, index=True
    )

    author: Mapped[ApplicationUser] = relationship(lazy="raise")
    game: Mapped[Game] = relationship(lazy="raise")


@event.listens_for(Order, "before_update")
def _orders_are_immutable(mapper, connection, target):
    raise ValueError(f"Order {target.id} is immutable")
