import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, Optional

from pydantic import BaseModel, Field, HttpUrl, PlainSerializer

from gamestore.db.models import Comment, Game, Genre

# amounts are stored as Decimal but sent to clients as JSON numbers
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]

class AddGameRequest(BaseModel):
    title: str = Field(..., min_length=5, max_length=30)
    description: str = Field(..., min_length=5, max_length=500)
    image_url: HttpUrl
    video_url: Optional[HttpUrl] = None
    release_date: date
    publisher: str = Field(..., min_length=2, max_length=20)
    genre: str = Field(..., description="Genre name, e.g. RPG")
    price: Decimal = Field(..., ge=0, max_digits=18, decimal_places=2)

class GameOut(BaseModel):
    id: uuid.UUID
    title: str
    description: str
    image_url: str
    video_url: str = ""
    release_date: date
    publisher: str
    genre: str
    price: Money

    @classmethod
    def of(cls, game: Game) -> "GameOut":
        return cls(
            id=game.id,
            title=game.title,
            description=game.description,
            image_url=game.image_url,
            video_url=game.video_url or "",
            release_date=game.release_date,
            publisher=game.publisher,
            genre=game.genre.name if game.genre else "Unknown",
            price=game.price,
        )

class GenreRequest(BaseModel):
    name: str = Field(..., min_length=3, max_length=20)
    description: str = Field(..., min_length=5, max_length=500)

class GenreOut(BaseModel):
    id: int
    name: str
    description: str

    @classmethod
    def of(cls, genre: Genre) -> "GenreOut":
        return cls(id=genre.id, name=genre.name, description=genre.description)

class AddCommentRequest(BaseModel):
    game_id: uuid.UUID
    content: str = Field(..., min_length=1, max_length=2000)

class CommentOut(BaseModel):
    id: int
    content: str
    author_name: str
    author_avatar_url: str
    created_at: datetime

    @classmethod
    def of(cls, comment: Comment) -> "CommentOut":
        return cls(
            id=comment.id,
            content=comment.content,
            author_name=comment.author.username,
            author_avatar_url=comment.author.profile_picture_url or "",
            created_at=comment.created_at,
        )
