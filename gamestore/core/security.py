import hashlib
import hmac
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy.ext.asyncio import AsyncSession

from gamestore.core.config import settings
from gamestore.core.errors import ForbiddenError, UnauthorizedError
from gamestore.db.models import ApplicationUser, RoleName
from gamestore.db.session import get_db
from gamestore.repositories.users import UserRepository

PBKDF2_ROUNDS = 260_000
EMAIL_CONFIRM = "email-confirm"
PASSWORD_RESET = "password-reset"

auth_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Principal:
    """Authenticated caller, decoded from a bearer token."""

    user_id: str
    username: str
    role: RoleName
    stamp: str = ""

    @property
    def is_admin(self) -> bool:
        return self.role == RoleName.ADMIN


# ------- passwords -------
def hash_password(password: str, salt: Optional[str] = None) -> str:
    salt = salt or secrets.token_hex(16)
    h = hashlib.pbkdf2_hmac("sha256", password.encode(), salt.encode(), PBKDF2_ROUNDS).hex()
    return f"{salt}${h}"

def verify_password(password: str, hashed: str) -> bool:
    try:
        salt, _ = hashed.split("$")
    except ValueError:
        return False
    return hmac.compare_digest(hash_password(password, salt), hashed)


# ------- tokens -------
def make_token(user: ApplicationUser) -> str:
    exp = int((datetime.now(timezone.utc) + timedelta(minutes=settings.TOKEN_MIN)).timestamp())
    payload = {
        "sub": user.id,
        "name": user.username,
        "role": user.role.value,
        "stamp": user.security_stamp,
        "exp": exp,
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGO)

def decode_token(token: str) -> Principal:
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGO])
        return Principal(
            user_id=payload["sub"],
            username=payload["name"],
            role=RoleName(payload["role"]),
            stamp=payload.get("stamp") or "",
        )
    except (JWTError, KeyError, ValueError):
        raise UnauthorizedError()

def _password_fingerprint(user: ApplicationUser) -> str:
    return hashlib.sha256(user.hashed_password.encode()).hexdigest()[:16]

def make_email_token(user: ApplicationUser, purpose: str) -> str:
    """Single-purpose signed token for email confirmation and password resets.

    Every token carries the user's security stamp, so disabling the account or
    changing its role voids links already sent. Reset tokens also embed a
    fingerprint of the current password hash so they stop working once the
    password has been changed.
    """
    exp = int((datetime.now(timezone.utc) + timedelta(hours=settings.EMAIL_TOKEN_HOURS)).timestamp())
    payload = {"sub": user.id, "purpose": purpose, "stamp": user.security_stamp, "exp": exp}
    if purpose == PASSWORD_RESET:
        payload["pwd"] = _password_fingerprint(user)
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGO)

def check_email_token(user: ApplicationUser, token: str, purpose: str) -> bool:
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGO])
    except JWTError:
        return False
    if payload.get("sub") != user.id or payload.get("purpose") != purpose:
        return False
    if payload.get("stamp") != user.security_stamp:
        return False
    if purpose == PASSWORD_RESET and payload.get("pwd") != _password_fingerprint(user):
        return False
    return True


# ------- dependencies -------
async def require_user(
    creds: Optional[HTTPAuthorizationCredentials] = Depends(auth_scheme),
    db: AsyncSession = Depends(get_db),
) -> Principal:
    """Resolve the bearer token against the current account state.

    Tokens of disabled accounts, or issued before the security stamp was
    rotated, are rejected; the role comes from the database, not the token.
    """
    if creds is None or creds.scheme.lower() != "bearer":
        raise UnauthorizedError()
    claims = decode_token(creds.credentials)
    user = await UserRepository(db).find_by_id(claims.user_id)
    if user is None or not user.email_confirmed or user.security_stamp != claims.stamp:
        raise UnauthorizedError()
    return Principal(user_id=user.id, username=user.username, role=user.role, stamp=user.security_stamp)

def require_admin(principal: Principal = Depends(require_user)) -> Principal:
    if not principal.is_admin:
        raise ForbiddenError()
    return principal
