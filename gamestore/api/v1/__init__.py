from fastapi import APIRouter
from .routes import admin, auth, cart, games, users

router = APIRouter()
router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(games.router, prefix="/games", tags=["games"])
router.include_router(cart.router, prefix="/user/shopping-cart", tags=["shopping-cart"])
router.include_router(users.router, prefix="/user", tags=["user"])
router.include_router(admin.router, prefix="/admin", tags=["admin"])
