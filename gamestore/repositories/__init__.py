"""
Persistence layer: thin wrappers around an AsyncSession.

Repositories only stage changes (add / delete / flush); committing is the
caller's job so a service can group several repositories in one transaction.
Relationships are declared ``lazy="raise"``, so every query here states the
collections it loads.
"""
from .carts import CartRepository
from .games import GameRepository
from .genres import GenreRepository
from .orders import OrderRepository
from .users import UserRepository

__all__ = ["CartRepository", "GameRepository", "GenreRepository", "OrderRepository", "UserRepository"]
