import re
import uuid
from typing import Annotated

from pydantic import AfterValidator, BaseModel, EmailStr, Field, model_validator

from gamestore.db.models import ApplicationUser, Game

def check_password_strength(v: str) -> str:
    if len(v) < 8:
        raise ValueError("Password must be at least 8 characters long.")
    if not re.search(r"\d", v):
        raise ValueError("Password must contain a digit.")
    if not re.search(r"[a-z]", v) or not re.search(r"[A-Z]", v):
        raise ValueError("Password must contain lowercase and uppercase letters.")
    if not re.search(r"[^A-Za-z0-9]", v):
        raise ValueError("Password must contain a non-alphanumeric character.")
    return v

StrongPassword = Annotated[str, AfterValidator(check_password_strength)]

class RegisterRequest(BaseModel):
    username: str = Field(..., min_length=3, max_length=20)
    email: EmailStr
    first_name: str = Field(..., min_length=2, max_length=20)
    last_name: str = Field(..., min_length=2, max_length=20)
    age: int = Field(..., ge=13, le=120)
    password: StrongPassword
    confirm_password: str

    @model_validator(mode="after")
    def passwords_match(self):
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match.")
        return self

class LoginRequest(BaseModel):
    username: str
    password: str

class TokenOut(BaseModel):
    token: str
    message: str = "Login successful."

class EditProfileRequest(BaseModel):
    email: EmailStr
    first_name: str = Field(..., min_length=2, max_length=20)
    last_name: str = Field(..., min_length=2, max_length=20)
    age: int = Field(..., ge=13, le=120)

class ChangePasswordRequest(BaseModel):
    password: str
    new_password: StrongPassword
    confirm_password: str

    @model_validator(mode="after")
    def passwords_match(self):
        if self.new_password != self.confirm_password:
            raise ValueError("Passwords do not match.")
        return self

class ForgotPasswordRequest(BaseModel):
    email: EmailStr

class ResetPasswordRequest(BaseModel):
    user_id: str
    token: str
    password: StrongPassword

class OwnedGameOut(BaseModel):
    id: uuid.UUID
    title: str
    image_url: str

    @classmethod
    def of(cls, game: Game) -> "OwnedGameOut":
        return cls(id=game.id, title=game.title, image_url=game.image_url)

class UserOut(BaseModel):
    id: str
    username: str
    email: str
    first_name: str = ""
    last_name: str = ""
    age: int = 0
    role: str
    profile_picture_url: str = ""
    is_confirmed: bool = False
    owned_games: list[OwnedGameOut] = Field(default_factory=list)

    @classmethod
    def of(cls, user: ApplicationUser, with_library: bool = False) -> "UserOut":
        return cls(
            id=user.id,
            username=user.username,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            age=user.age,
            role=user.role.value,
            profile_picture_url=user.profile_picture_url or "",
            is_confirmed=user.email_confirmed,
            owned_games=[OwnedGameOut.of(g) for g in user.owned_games] if with_library else [],
        )

class MessageOut(BaseModel):
    message: str

class FileUrlOut(BaseModel):
    file_url: str
