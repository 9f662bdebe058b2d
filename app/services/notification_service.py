"""Email and SMS delivery for price alerts."""

from __future__ import annotations

import asyncio
import logging
import re
import smtplib
from email.message import EmailMessage
from email.utils import formataddr
from typing import Awaitable, Callable, Dict, Iterable, List, Optional, Sequence

import httpx

from app.core.config import Settings
from app.core.enums import NotificationType
from app.core.exceptions import NotificationError
from app.schemas import PriceAlertRead, ProductRead

logger = logging.getLogger(__name__)

_PHONE_PATTERN = re.compile(r"^\+?[0-9][0-9 \-]{6,}$")


def _price_lines(alert: PriceAlertRead, product: ProductRead, price: float) -> List[str]:
    lines = [
        f"Product: {product.name}",
        f"Current price: £{price:,.2f}",
        f"Your target: £{alert.target_price:,.2f}",
    ]
    if product.discounted_price is not None:
        lines.append(f"Was: £{product.price:,.2f}")
    if product.url:
        lines.append(f"Buy now: {product.url}")
    return lines


class EmailNotificationService:
    """Lightweight SMTP helper for price alert notifications."""

    def __init__(self, settings: Settings):
        self._settings = settings

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    async def send_price_alert(
        self,
        *,
        alert: PriceAlertRead,
        product: ProductRead,
        price: float,
        recipients: Optional[Sequence[str]] = None,
    ) -> bool:
        """Send a price drop email.

        Args:
            alert: The alert that fired.
            product: Product whose effective price reached the target.
            price: The effective price that triggered the alert.
            recipients: Override the default recipient resolution.
        """

        if not self._ready():
            logger.warning("SMTP configuration incomplete; price alert %s skipped", alert.id)
            return False

        to_addresses = self._resolve_recipients(recipients or self._alert_recipients(alert))
        if not to_addresses:
            logger.warning("No recipients configured for price alert %s; skipping email", alert.id)
            return False

        subject = f"Price drop: {product.name} is now £{price:,.2f}"

        lines = _price_lines(alert, product, price)
        lines.append("\nSent automatically by the price alert service")
        body_text = "\n".join(lines)

        body_html_lines = ["<p><strong>Price Alert</strong></p>"]
        body_html_lines.extend(f"<p>{line}</p>" for line in lines[:-1])
        if product.images:
            body_html_lines.append(
                f'<p><img src="{product.images[0]}" alt="{product.name}" '
                'style="max-width: 380px; border-radius: 6px;" /></p>'
            )
        body_html_lines.append("<p><em>Sent automatically by the price alert service</em></p>")
        body_html = "".join(body_html_lines)

        message = self._build_message(subject, to_addresses, body_text, body_html)
        return await self._dispatch(message)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _ready(self) -> bool:
        settings = self._settings
        return bool(settings.SMTP_HOST and settings.SMTP_USERNAME and settings.SMTP_PASSWORD)

    @staticmethod
    def _alert_recipients(alert: PriceAlertRead) -> List[str]:
        # user ids that are email addresses are mailed directly
        return [alert.user_id] if "@" in alert.user_id else []

    def _resolve_recipients(self, override: Optional[Sequence[str]]) -> List[str]:
        recipients: Iterable[str] = override if override else self._settings.NOTIFICATION_EMAILS
        return [email.strip() for email in recipients if email]

    def _build_message(
        self,
        subject: str,
        to_addresses: Sequence[str],
        body_text: str,
        body_html: Optional[str] = None,
    ) -> EmailMessage:
        message = EmailMessage()
        message["Subject"] = subject
        message["From"] = self._formatted_from_address
        message["To"] = ", ".join(sorted(set(to_addresses)))
        message.set_content(body_text)
        if body_html:
            message.add_alternative(body_html, subtype="html")
        return message

    @property
    def _formatted_from_address(self) -> str:
        from_email = self._settings.SMTP_FROM_EMAIL or self._settings.SMTP_USERNAME
        from_name = self._settings.SMTP_FROM_NAME or "Price Alerts"
        return formataddr((from_name, from_email))

    async def _dispatch(self, message: EmailMessage) -> bool:
        try:
            await asyncio.to_thread(self._send_sync, message)
            logger.info("Price alert email sent to %s", message["To"])
            return True
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("Failed to send price alert email: %s", exc, exc_info=True)
            return False

    def _send_sync(self, message: EmailMessage) -> None:
        settings = self._settings
        host = settings.SMTP_HOST
        port = settings.SMTP_PORT or (465 if settings.SMTP_USE_SSL else 587)
        timeout = settings.SMTP_TIMEOUT

        if settings.SMTP_USE_SSL:
            smtp = smtplib.SMTP_SSL(host=host, port=port, timeout=timeout)
        else:
            smtp = smtplib.SMTP(host=host, port=port, timeout=timeout)
        try:
            if settings.SMTP_USE_TLS and not settings.SMTP_USE_SSL:
                smtp.starttls()

            smtp.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD)
            smtp.send_message(message)
        finally:
            try:
                smtp.quit()
            except smtplib.SMTPException:
                smtp.close()


class SmsNotificationService:
    """Posts price alert texts to an HTTP SMS gateway."""

    def __init__(self, settings: Settings):
        self._settings = settings

    def _ready(self) -> bool:
        return bool(self._settings.SMS_API_URL and self._settings.SMS_API_KEY)

    async def send_price_alert(
        self,
        *,
        alert: PriceAlertRead,
        product: ProductRead,
        price: float,
        to_number: Optional[str] = None,
    ) -> bool:
        if not self._ready():
            logger.warning("SMS gateway not configured; price alert %s skipped", alert.id)
            return False

        to_number = to_number or alert.user_id
        if not _PHONE_PATTERN.match(to_number or ""):
            logger.warning("Alert %s has no phone number to text; skipping SMS", alert.id)
            return False

        payload = {
            "to": to_number,
            "from": self._settings.SMS_FROM_NUMBER or None,
            "message": f"{product.name} is now £{price:,.2f} (your target £{alert.target_price:,.2f}). {product.url}",
        }
        headers = {
            "Authorization": f"Bearer {self._settings.SMS_API_KEY}",
            "Content-Type": "application/json",
        }

        try:
            async with httpx.AsyncClient(timeout=30.0) as client:
                response = await client.request(
                    method="POST",
                    url=self._settings.SMS_API_URL,
                    headers=headers,
                    json=payload
                )
        except httpx.RequestError as e:
            raise NotificationError(f"SMS gateway unreachable: {str(e)}")

        if response.status_code not in (200, 201, 202, 204):
            raise NotificationError(f"SMS gateway rejected message: {response.status_code} {response.text[:200]}")

        logger.info("Price alert SMS sent for alert %s", alert.id)
        return True


ChannelSender = Callable[..., Awaitable[bool]]


class PriceAlertNotifier:
    """
    Routes a triggered alert to the channel it asked for.

    send() never raises: a failed delivery is logged and reported as False so
    that one broken channel cannot interrupt an alert evaluation run.
    """

    def __init__(
        self,
        settings: Settings,
        email_service: Optional[EmailNotificationService] = None,
        sms_service: Optional[SmsNotificationService] = None,
    ):
        self.email_service = email_service or EmailNotificationService(settings)
        self.sms_service = sms_service or SmsNotificationService(settings)
        self._channels: Dict[NotificationType, ChannelSender] = {
            NotificationType.EMAIL: self.email_service.send_price_alert,
            NotificationType.SMS: self.sms_service.send_price_alert,
        }

    async def send(
        self,
        channel: NotificationType,
        alert: PriceAlertRead,
        product: ProductRead,
        price: float,
    ) -> bool:
        try:
            sender = self._channels[NotificationType(channel)]
        except (KeyError, ValueError):
            logger.error("Unknown notification channel %r for alert %s", channel, alert.id)
            return False

        try:
            return await sender(alert=alert, product=product, price=price)
        except Exception as exc:
            logger.error("Failed to deliver %s alert %s: %s", channel, alert.id, exc, exc_info=True)
            return False

