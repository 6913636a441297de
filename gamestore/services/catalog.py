import logging
import uuid

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from gamestore.core.config import settings
from gamestore.core.errors import (
    ConflictError, DuplicateGenreError, GameNotFoundError, GenreNotFoundError, UserNotFoundError,
)
from gamestore.core.security import Principal
from gamestore.db.models import Comment, Game, Genre
from gamestore.repositories import GameRepository, GenreRepository, UserRepository
from gamestore.schemas.catalog import AddCommentRequest, AddGameRequest, GenreRequest
from gamestore.services.media import MediaStore, mirror_url

log = logging.getLogger("gamestore.catalog")


class CatalogService:
    def __init__(self, db: AsyncSession, media: MediaStore | None = None):
        self.db = db
        self.media = media
        self.games = GameRepository(db)
        self.genres = GenreRepository(db)
        self.users = UserRepository(db)

    # ------- games -------
    async def list_games(self) -> list[Game]:
        return await self.games.get_all()

    async def get_game(self, game_id: uuid.UUID) -> Game:
        game = await self.games.get_by_id(game_id)
        if game is None:
            raise GameNotFoundError(f"Game with id {game_id} not found.")
        return game

    async def _genre_named(self, name: str) -> Genre:
        genre = await self.genres.get_by_name(name)
        if genre is None:
            raise GenreNotFoundError(f"Genre '{name}' not found.")
        return genre

    async def _media_url(self, url: str | None, folder: str) -> str | None:
        if url is None or not settings.MIRROR_GAME_MEDIA or self.media is None:
            return url
        return await mirror_url(self.media, url, folder)

    async def add_game(self, req: AddGameRequest) -> Game:
        genre = await self._genre_named(req.genre)
        game = Game(
            title=req.title,
            description=req.description,
            image_url=await self._media_url(str(req.image_url), "images"),
            video_url=await self._media_url(str(req.video_url) if req.video_url else None, "videos"),
            release_date=req.release_date,
            publisher=req.publisher,
            price=req.price,
            genre=genre,
        )
        await self.games.add(game)
        await self.db.commit()
        log.info("Added game %s (%s)", game.title, game.id)
        return game

    async def update_game(self, game_id: uuid.UUID, req: AddGameRequest) -> Game:
        game = await self.get_game(game_id)
        genre = await self._genre_named(req.genre)
        game.title = req.title
        game.description = req.description
        game.image_url = str(req.image_url)
        game.video_url = str(req.video_url) if req.video_url else None
        game.release_date = req.release_date
        game.publisher = req.publisher
        game.price = req.price
        game.genre = genre
        await self.db.commit()
        return game

    async def delete_game(self, game_id: uuid.UUID) -> None:
        game = await self.get_game(game_id)
        await self.games.delete(game)
        await self.db.commit()
        log.info("Deleted game %s", game_id)

    # ------- comments -------
    async def comments(self, game_id: uuid.UUID) -> list[Comment]:
        await self.get_game(game_id)
        return await self.games.get_comments(game_id)

    async def add_comment(self, principal: Principal, req: AddCommentRequest) -> Comment:
        game = await self.get_game(req.game_id)
        author = await self.users.find_by_id(principal.user_id)
        if author is None:
            raise UserNotFoundError()
        comment = Comment(content=req.content, author=author, game=game)
        await self.games.add_comment(comment)
        await self.db.commit()
        return comment

    # ------- genres -------
    async def list_genres(self) -> list[Genre]:
        return await self.genres.get_all()

    async def get_genre(self, genre_id: int) -> Genre:
        genre = await self.genres.get_by_id(genre_id)
        if genre is None:
            raise GenreNotFoundError()
        return genre

    async def _save_genre(self) -> None:
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise DuplicateGenreError()

    async def add_genre(self, req: GenreRequest) -> Genre:
        if await self.genres.get_by_name(req.name):
            raise DuplicateGenreError()
        genre = Genre(name=req.name, description=req.description)
        self.db.add(genre)
        await self._save_genre()
        return genre

    async def update_genre(self, genre_id: int, req: GenreRequest) -> Genre:
        genre = await self.get_genre(genre_id)
        other = await self.genres.get_by_name(req.name)
        if other is not None and other.id != genre.id:
            raise DuplicateGenreError()
        genre.name = req.name
        genre.description = req.description
        await self._save_genre()
        return genre

    async def delete_genre(self, genre_id: int) -> None:
        genre = await self.get_genre(genre_id)
        if await self.genres.in_use(genre.id):
            raise ConflictError("Genre is assigned to games and cannot be deleted.")
        await self.genres.delete(genre)
        await self.db.commit()
