# Notification channel tests
import smtplib
from datetime import datetime, timezone
from unittest.mock import AsyncMock

import httpx
import pytest

from app.core.config import Settings
from app.core.enums import NotificationType
from app.core.exceptions import NotificationError
from app.schemas import PriceAlertRead, ProductRead
from app.services.notification_service import (
    EmailNotificationService,
    PriceAlertNotifier,
    SmsNotificationService,
)

NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def alert():
    return PriceAlertRead(
        id=5, user_id="shopper@example.com", product_id=1, target_price=45.0, created_at=NOW
    )


@pytest.fixture
def product():
    return ProductRead(
        id=1,
        external_id="generic-1",
        name="Linen Shirt",
        price=50.0,
        discounted_price=40.0,
        brand_id=1,
        category_id=1,
        images=["https://cdn.example/shirt.jpg"],
        url="https://shop.example/products/linen-shirt",
    )


@pytest.fixture
def smtp_settings():
    return Settings(
        SMTP_HOST="smtp.example.com",
        SMTP_USERNAME="alerts@example.com",
        SMTP_PASSWORD="secret",
        NOTIFICATION_EMAILS="ops@example.com, buyer@example.com",
    )


@pytest.fixture
def sms_settings():
    return Settings(SMS_API_URL="https://sms.example/send", SMS_API_KEY="sms-key", SMS_FROM_NUMBER="+447700900000")


"""
1. Email
"""

@pytest.mark.asyncio
async def test_email_skipped_without_smtp_config(settings, alert, product):
    service = EmailNotificationService(settings)

    assert await service.send_price_alert(alert=alert, product=product, price=40.0) is False


@pytest.mark.asyncio
async def test_email_goes_to_user_address(mocker, smtp_settings, alert, product):
    service = EmailNotificationService(smtp_settings)
    send_sync = mocker.patch.object(service, "_send_sync")

    assert await service.send_price_alert(alert=alert, product=product, price=40.0) is True

    message = send_sync.call_args.args[0]
    assert message["To"] == "shopper@example.com"
    assert "Linen Shirt" in message["Subject"]
    assert "£40.00" in message["Subject"]
    assert "alerts@example.com" in message["From"]


@pytest.mark.asyncio
async def test_email_falls_back_to_notification_emails(mocker, smtp_settings, alert, product):
    service = EmailNotificationService(smtp_settings)
    send_sync = mocker.patch.object(service, "_send_sync")
    alert = alert.model_copy(update={"user_id": "user-123"})

    await service.send_price_alert(alert=alert, product=product, price=40.0)

    message = send_sync.call_args.args[0]
    assert message["To"] == "buyer@example.com, ops@example.com"


@pytest.mark.asyncio
async def test_smtp_failure_returns_false(mocker, smtp_settings, alert, product):
    service = EmailNotificationService(smtp_settings)
    mocker.patch.object(service, "_send_sync", side_effect=smtplib.SMTPException("refused"))

    assert await service.send_price_alert(alert=alert, product=product, price=40.0) is False


"""
2. SMS
"""

@pytest.mark.asyncio
async def test_sms_posts_to_gateway(mocker, sms_settings, alert, product):
    mock_client = mocker.patch("httpx.AsyncClient")
    mock_response = mocker.MagicMock()
    mock_response.status_code = 202
    mock_client.return_value.__aenter__.return_value.request.return_value = mock_response
    alert = alert.model_copy(update={"user_id": "+44 7700 900123", "notification_type": NotificationType.SMS})

    sent = await SmsNotificationService(sms_settings).send_price_alert(alert=alert, product=product, price=40.0)

    assert sent is True
    _, kwargs = mock_client.return_value.__aenter__.return_value.request.call_args
    assert kwargs["method"] == "POST"
    assert kwargs["url"] == "https://sms.example/send"
    assert kwargs["headers"]["Authorization"] == "Bearer sms-key"
    assert kwargs["json"]["to"] == "+44 7700 900123"
    assert "Linen Shirt" in kwargs["json"]["message"]


@pytest.mark.asyncio
async def test_sms_skipped_without_a_phone_number(mocker, sms_settings, alert, product):
    mock_client = mocker.patch("httpx.AsyncClient")

    sent = await SmsNotificationService(sms_settings).send_price_alert(alert=alert, product=product, price=40.0)

    assert sent is False
    mock_client.assert_not_called()


@pytest.mark.asyncio
async def test_sms_gateway_rejection_raises(mocker, sms_settings, alert, product):
    mock_client = mocker.patch("httpx.AsyncClient")
    mock_response = mocker.MagicMock()
    mock_response.status_code = 401
    mock_response.text = "bad key"
    mock_client.return_value.__aenter__.return_value.request.return_value = mock_response
    alert = alert.model_copy(update={"user_id": "+447700900123"})

    with pytest.raises(NotificationError):
        await SmsNotificationService(sms_settings).send_price_alert(alert=alert, product=product, price=40.0)


@pytest.mark.asyncio
async def test_sms_network_error_raises(mocker, sms_settings, alert, product):
    mock_client = mocker.patch("httpx.AsyncClient")
    mock_client.return_value.__aenter__.return_value.request.side_effect = httpx.RequestError("no route")
    alert = alert.model_copy(update={"user_id": "+447700900123"})

    with pytest.raises(NotificationError):
        await SmsNotificationService(sms_settings).send_price_alert(alert=alert, product=product, price=40.0)


"""
3. Dispatch
"""

@pytest.mark.asyncio
@pytest.mark.parametrize("channel, used, unused", [
    (NotificationType.EMAIL, "email_service", "sms_service"),
    (NotificationType.SMS, "sms_service", "email_service"),
])
async def test_notifier_routes_by_channel(settings, alert, product, channel, used, unused):
    email_service = AsyncMock()
    sms_service = AsyncMock()
    email_service.send_price_alert.return_value = True
    sms_service.send_price_alert.return_value = True
    notifier = PriceAlertNotifier(settings, email_service=email_service, sms_service=sms_service)

    assert await notifier.send(channel, alert, product, 40.0) is True

    getattr(notifier, used).send_price_alert.assert_awaited_once_with(alert=alert, product=product, price=40.0)
    getattr(notifier, unused).send_price_alert.assert_not_awaited()


@pytest.mark.asyncio
async def test_notifier_never_raises(settings, alert, product):
    sms_service = AsyncMock()
    sms_service.send_price_alert.side_effect = NotificationError("gateway down")
    notifier = PriceAlertNotifier(settings, sms_service=sms_service)

    assert await notifier.send(NotificationType.SMS, alert, product, 40.0) is False
    assert await notifier.send("carrier-pigeon", alert, product, 40.0) is False
