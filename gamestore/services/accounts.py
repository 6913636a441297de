import logging
import os
from typing import BinaryIO
from urllib.parse import quote, urlencode

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from gamestore.core.config import settings
from gamestore.core.errors import (
    DuplicateAccountError, EmailDeliveryError, UnauthorizedError, UserNotFoundError,
    ValidationFailedError,
)
from gamestore.core.security import (
    EMAIL_CONFIRM, PASSWORD_RESET, Principal, check_email_token, hash_password,
    make_email_token, make_token, verify_password,
)
from gamestore.db.models import ApplicationUser, RoleName
from gamestore.repositories import UserRepository
from gamestore.schemas.users import EditProfileRequest, RegisterRequest
from gamestore.services.media import ALLOWED_IMAGE_EXTENSIONS, MediaStore, unique_name
from gamestore.services.notifications import (
    EmailSender, confirm_email_message, reset_password_message,
)

log = logging.getLogger("gamestore.accounts")


def frontend_redirect(path: str, **params: str) -> str:
    return f"{settings.FRONTEND_URL.rstrip('/')}/{path}?{urlencode(params, quote_via=quote)}"


class AccountService:
    def __init__(self, db: AsyncSession, notifier: EmailSender | None = None):
        self.db = db
        self.notifier = notifier
        self.users = UserRepository(db)

    # ------- directory -------
    async def find_by_id(self, user_id: str, with_library: bool = False) -> ApplicationUser:
        user = await self.users.find_by_id(user_id, with_library=with_library)
        if user is None:
            raise UserNotFoundError()
        return user

    async def find_by_email(self, email: str) -> ApplicationUser:
        user = await self.users.find_by_email(email)
        if user is None:
            raise UserNotFoundError("Provided email is not valid.")
        return user

    async def update(self, user: ApplicationUser) -> ApplicationUser:
        await self.users.update(user)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise DuplicateAccountError("The email address is already in use.")
        return user

    async def library(self, principal: Principal):
        user = await self.find_by_id(principal.user_id, with_library=True)
        return user.owned_games

    # ------- registration & login -------
    async def register(self, req: RegisterRequest, confirm_url: str) -> ApplicationUser:
        if await self.users.find_by_email(req.email):
            raise DuplicateAccountError("The email address is already in use.")
        if await self.users.find_by_name(req.username):
            raise DuplicateAccountError("The username is already in use.")

        user = ApplicationUser(
            username=req.username,
            email=req.email.lower(),
            hashed_password=hash_password(req.password),
            first_name=req.first_name,
            last_name=req.last_name,
            age=req.age,
            role=RoleName.USER,
            email_confirmed=False,
        )
        await self.users.add(user)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise DuplicateAccountError()
        log.info("Registered user %s (%s)", user.username, user.id)

        token = make_email_token(user, EMAIL_CONFIRM)
        link = f"{confirm_url}?{urlencode({'user_id': user.id, 'token': token})}"
        await self._send(user, *confirm_email_message(link))
        return user

    async def authenticate(self, username: str, password: str) -> str:
        user = await self.users.find_by_name(username)
        if user is None or not verify_password(password, user.hashed_password):
            raise UnauthorizedError("Invalid username or password.")
        if not user.email_confirmed:
            raise UnauthorizedError("Please confirm your email address.")
        return make_token(user)

    async def confirm_email(self, user_id: str | None, token: str | None) -> str:
        """Confirm an address and return the frontend URL to redirect to."""
        if not user_id or not token:
            return frontend_redirect("login", message="Invalid confirmation parameters.")
        user = await self.users.find_by_id(user_id)
        if user is None:
            return frontend_redirect("login", message="User not found.")
        if user.email_confirmed:
            return frontend_redirect("login", message="Your email is already confirmed. Please log in.")
        if not check_email_token(user, token, EMAIL_CONFIRM):
            return frontend_redirect("login", message="Email confirmation failed. Please try again.")
        user.email_confirmed = True
        await self.db.commit()
        return frontend_redirect("login", message="Email confirmed successfully.")

    # ------- passwords -------
    async def forgot_password(self, email: str, reset_url: str) -> None:
        user = await self.find_by_email(email)
        token = make_email_token(user, PASSWORD_RESET)
        link = f"{reset_url}?{urlencode({'user_id': user.id, 'token': token})}"
        await self._send(user, *reset_password_message(user, link))

    async def reset_password(self, user_id: str, token: str, password: str) -> None:
        user = await self.find_by_id(user_id)
        if not check_email_token(user, token, PASSWORD_RESET):
            raise ValidationFailedError("Password reset failed.")
        user.hashed_password = hash_password(password)
        user.rotate_security_stamp()
        await self.db.commit()
        log.info("Password reset for user %s", user.id)

    async def change_password(self, principal: Principal, password: str, new_password: str) -> None:
        user = await self.find_by_id(principal.user_id)
        if not verify_password(password, user.hashed_password):
            raise ValidationFailedError("Failed to change password.")
        user.hashed_password = hash_password(new_password)
        user.rotate_security_stamp()
        await self.db.commit()

    # ------- profile -------
    async def edit_profile(self, principal: Principal, req: EditProfileRequest) -> ApplicationUser:
        user = await self.find_by_id(principal.user_id)
        email = req.email.lower()
        if email != user.email:
            other = await self.users.find_by_email(email)
            if other is not None and other.id != user.id:
                raise DuplicateAccountError("The email address is already in use.")
        user.email = email
        user.first_name = req.first_name
        user.last_name = req.last_name
        user.age = req.age
        return await self.update(user)

    async def upload_profile_picture(
        self, principal: Principal, stream: BinaryIO, filename: str, store: MediaStore
    ) -> str:
        ext = os.path.splitext(filename)[1].lower()
        if ext not in ALLOWED_IMAGE_EXTENSIONS:
            log.warning("Invalid file type: %s", filename)
            raise ValidationFailedError(
                "Invalid file type. Only JPG, JPEG, PNG, GIF, BMP, TIFF, and WEBP files are allowed."
            )
        user = await self.find_by_id(principal.user_id)
        name = unique_name(filename, prefix=user.username)
        log.info("Uploading file: %s", name)
        url = await store.upload(stream, name, "profile-images")
        user.profile_picture_url = url
        await self.update(user)
        return url

    # ------- admin -------
    async def list_users(self) -> list[ApplicationUser]:
        return await self.users.list_all()

    async def set_confirmed(self, user_id: str, confirmed: bool) -> ApplicationUser:
        user = await self.find_by_id(user_id)
        user.email_confirmed = confirmed
        if not confirmed:
            user.rotate_security_stamp()
        return await self.update(user)

    async def set_role(self, user_id: str, role: RoleName) -> ApplicationUser:
        user = await self.find_by_id(user_id)
        user.role = role
        user.rotate_security_stamp()
        log.info("User %s is now %s", user.username, role.value)
        return await self.update(user)

    async def _send(self, user: ApplicationUser, subject: str, body: str) -> None:
        if self.notifier is None:
            return
        try:
            await self.notifier.send_email(user.email, subject, body)
        except EmailDeliveryError as e:
            log.warning("Email '%s' to %s not delivered: %s", subject, user.email, e)
