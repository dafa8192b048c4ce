# driverqueue/services/notification_service.py
"""
SMS notification when a driver is called or recalled.
Sends through the Twilio REST API (Messages resource) with httpx.

Runs as a FastAPI background task after the queue change has been committed.
A failed SMS is logged and reported as False; it never undoes the call.
"""

from typing import Optional

import httpx

from driverqueue.config import settings
from driverqueue.schemas.driver import DriverOut
from driverqueue.utils.logger import get_logger

logger = get_logger(__name__)


def build_call_message(driver: DriverOut) -> str:
    return settings.CALL_MESSAGE_TEMPLATE.format(name=driver.name, plate=driver.plate)


async def send_sms(to_number: str, body: str, client: Optional[httpx.AsyncClient] = None) -> bool:
    """Send one SMS. Returns True when Twilio accepted the message."""
    if not settings.sms_configured:
        logger.warning(f"[SMS] Not configured, message to {to_number} skipped")
        return False
    if not to_number or not to_number.startswith("+"):
        logger.error(f"[SMS] Invalid destination number '{to_number}'")
        return False

    sid = settings.TWILIO_ACCOUNT_SID
    url = f"{settings.TWILIO_API_URL}/Accounts/{sid}/Messages.json"
    data = {"To": to_number, "From": settings.TWILIO_PHONE_NUMBER, "Body": body}

    owns_client = client is None
    if owns_client:
        client = httpx.AsyncClient(timeout=settings.SMS_TIMEOUT_SECONDS)
    try:
        resp = await client.post(url, data=data, auth=(sid, settings.TWILIO_AUTH_TOKEN))
    except httpx.HTTPError as e:
        logger.error(f"[SMS] Send to {to_number} failed: {e}")
        return False
    finally:
        if owns_client:
            await client.aclose()

    if resp.status_code not in (200, 201):
        logger.error(f"[SMS] Twilio returned HTTP {resp.status_code} for {to_number}: {resp.text[:200]}")
        return False

    try:
        message_sid = resp.json().get("sid", "unknown")
    except (ValueError, AttributeError):
        # 2xx from a proxy or gateway whose body is not a JSON object
        message_sid = "unknown"
    logger.info(f"[SMS] Sent to {to_number}, sid={message_sid}")
    return True


async def notify_driver_called(driver: DriverOut, client: Optional[httpx.AsyncClient] = None) -> bool:
    logger.info(f"[SMS] Notifying driver {driver.id} ({driver.name}), attempt {driver.call_attempts}")
    try:
        body = build_call_message(driver)
    except (KeyError, IndexError, ValueError) as e:
        logger.error(f"[SMS] CALL_MESSAGE_TEMPLATE could not be rendered for driver {driver.id}: {e!r}")
        return False
    return await send_sms(driver.phone_number, body, client=client)
