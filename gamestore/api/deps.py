from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from gamestore.db.session import get_db
from gamestore.services.accounts import AccountService
from gamestore.services.cart import CartService
from gamestore.services.catalog import CatalogService
from gamestore.services.checkout import CheckoutService
from gamestore.services.media import MediaStore, get_optional_media_store
from gamestore.services.notifications import EmailSender, get_email_sender
from gamestore.services.orders import OrderService


def get_cart_service(db: AsyncSession = Depends(get_db)) -> CartService:
    return CartService(db)

def get_order_service(db: AsyncSession = Depends(get_db)) -> OrderService:
    return OrderService(db)

def get_checkout_service(
    db: AsyncSession = Depends(get_db),
    notifier: EmailSender = Depends(get_email_sender),
) -> CheckoutService:
    return CheckoutService(db, notifier)

def get_account_service(
    db: AsyncSession = Depends(get_db),
    notifier: EmailSender = Depends(get_email_sender),
) -> AccountService:
    return AccountService(db, notifier)

def get_catalog_service(db: AsyncSession = Depends(get_db)) -> CatalogService:
    return CatalogService(db)

def get_admin_catalog_service(
    db: AsyncSession = Depends(get_db),
    media: MediaStore | None = Depends(get_optional_media_store),
) -> CatalogService:
    return CatalogService(db, media)
