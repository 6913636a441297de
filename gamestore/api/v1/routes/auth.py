from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse

from gamestore.api.deps import get_account_service
from gamestore.core.security import Principal, require_user
from gamestore.schemas.users import (
    ForgotPasswordRequest, LoginRequest, MessageOut, RegisterRequest, ResetPasswordRequest,
    TokenOut, UserOut,
)
from gamestore.services.accounts import AccountService, frontend_redirect

router = APIRouter()

@router.get("/user", response_model=UserOut)
async def get_user(
    user: Principal = Depends(require_user),
    accounts: AccountService = Depends(get_account_service),
):
    return UserOut.of(await accounts.find_by_id(user.user_id, with_library=True), with_library=True)

@router.post("/register", response_model=MessageOut)
async def register(
    body: RegisterRequest,
    request: Request,
    accounts: AccountService = Depends(get_account_service),
):
    await accounts.register(body, confirm_url=str(request.url_for("confirm_email")))
    return MessageOut(message="User registered successfully. Please check your email to confirm your account.")

@router.post("/login", response_model=TokenOut)
async def login(body: LoginRequest, accounts: AccountService = Depends(get_account_service)):
    return TokenOut(token=await accounts.authenticate(body.username, body.password))

@router.get("/confirm-email", name="confirm_email")
async def confirm_email(
    user_id: Optional[str] = None,
    token: Optional[str] = None,
    accounts: AccountService = Depends(get_account_service),
):
    return RedirectResponse(await accounts.confirm_email(user_id, token))

@router.post("/forgot-password", response_model=MessageOut)
async def forgot_password(
    body: ForgotPasswordRequest,
    request: Request,
    accounts: AccountService = Depends(get_account_service),
):
    await accounts.forgot_password(body.email, reset_url=str(request.url_for("reset_password_page")))
    return MessageOut(message="An email has been sent to you with instructions how to reset your password.")

@router.get("/reset-password", name="reset_password_page")
async def reset_password_page(user_id: str, token: str):
    return RedirectResponse(frontend_redirect("reset-password", userId=user_id, token=token))

@router.post("/reset-password", response_model=MessageOut)
async def reset_password(body: ResetPasswordRequest, accounts: AccountService = Depends(get_account_service)):
    await accounts.reset_password(body.user_id, body.token, body.password)
    return MessageOut(message="Password reset successful.")

@router.post("/logout", response_model=MessageOut)
async def logout():
    # tokens are stateless; the client drops its copy
    return MessageOut(message="Logout successful.")
