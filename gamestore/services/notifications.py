"""
Outbound email.

``SesEmailSender`` delivers through Amazon SES; ``LogEmailSender`` only writes
the message to the log and is used when no sender address is configured.
Both raise ``EmailDeliveryError`` on failure.
"""
import html
import logging
from abc import ABC, abstractmethod
from decimal import Decimal
from functools import lru_cache

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from fastapi.concurrency import run_in_threadpool

from gamestore.core.config import settings
from gamestore.core.errors import EmailDeliveryError
from gamestore.db.models import ApplicationUser, Order

log = logging.getLogger("gamestore.notifications")


class EmailSender(ABC):
    @abstractmethod
    async def send_email(self, to: str, subject: str, html_body: str) -> None:
        ...


class LogEmailSender(EmailSender):
    async def send_email(self, to: str, subject: str, html_body: str) -> None:
        log.info("Email to %s: %s (%d chars)", to, subject, len(html_body))


class SesEmailSender(EmailSender):
    def __init__(self, sender: str, region: str):
        self.sender = sender
        self.ses = boto3.client("ses", region_name=region)

    def _send(self, to: str, subject: str, html_body: str) -> None:
        self.ses.send_email(
            Source=self.sender,
            Destination={"ToAddresses": [to]},
            Message={
                "Subject": {"Data": subject, "Charset": "UTF-8"},
                "Body": {"Html": {"Data": html_body, "Charset": "UTF-8"}},
            },
        )

    async def send_email(self, to: str, subject: str, html_body: str) -> None:
        try:
            await run_in_threadpool(self._send, to, subject, html_body)
        except (BotoCoreError, ClientError) as e:
            raise EmailDeliveryError(f"SES rejected email to {to}: {e}") from e


@lru_cache
def get_email_sender() -> EmailSender:
    if settings.EMAIL_SENDER:
        return SesEmailSender(settings.EMAIL_SENDER, settings.AWS_REGION)
    return LogEmailSender()


# ------- templates -------
def _money(value: Decimal) -> str:
    return f"{value:.2f}"

def order_confirmation_email(order: Order, customer: ApplicationUser) -> tuple[str, str]:
    lines = "".join(
        f"<li>{html.escape(i.title_snapshot)} ({_money(i.price_snapshot)})</li>" for i in order.items
    )
    body = (
        "<!DOCTYPE html><html lang=\"en\"><head><meta charset=\"UTF-8\">"
        "<title>Order Confirmation</title></head>"
        "<body style=\"font-family: Arial, sans-serif; color: #333;\">"
        "<h2>Thank You for Your Purchase!</h2>"
        f"<p>Hi <strong>{html.escape(customer.first_name or customer.username)}</strong>,</p>"
        f"<p>Your order (#<strong>{order.id}</strong>) has been successfully processed.</p>"
        "<h3>Order Details:</h3>"
        f"<ul><li><strong>Item(s) Purchased:</strong></li>{lines}"
        f"<li><strong>Order Total:</strong> {_money(order.total_price)}</li></ul>"
        "<p>Thanks again for choosing <strong>Game Store</strong>!</p>"
        "</body></html>"
    )
    return "Order Confirmation", body

def confirm_email_message(link: str) -> tuple[str, str]:
    body = (
        "<h3>Thank you for registering!</h3>"
        f"Please confirm your email by clicking the link: <a href=\"{html.escape(link)}\">Confirm Email</a>"
        "<p>If you didn't request this, please ignore this email.</p>"
    )
    return "Confirm your email", body

def reset_password_message(user: ApplicationUser, link: str) -> tuple[str, str]:
    body = (
        "<h3>Reset your password</h3>"
        f"<p>Hello <strong>{html.escape(user.first_name or user.username)}</strong>,</p>"
        "<p>We received a request to reset the password for your account. "
        "If you made this request, please follow the link below:</p>"
        f"<a href=\"{html.escape(link)}\">Reset My Password</a>"
        f"<p>This link is valid for <strong>{settings.EMAIL_TOKEN_HOURS} hours</strong>.</p>"
        "<p>If you did not request a password reset, no action is required.</p>"
    )
    return "Reset your password", body
