"""SMS Gateway - Twilio message delivery and webhook signature validation.

Invariants:
    - send() returns the provider message SID, or None when SMS is not configured
    - Provider failures are logged and reported as None; callers never crash on SMS
    - validate_signature() is a no-op (True) when validation is disabled in settings

Design Decisions:
    - Twilio's REST client is synchronous: calls run in a worker thread (asyncio.to_thread)
    - Signature check uses twilio.request_validator.RequestValidator (HMAC-SHA1 of URL + params)
"""

import asyncio
import logging

from twilio.base.exceptions import TwilioException
from twilio.request_validator import RequestValidator
from twilio.rest import Client

from app.config import get_settings

logger = logging.getLogger(__name__)


class SmsGateway:
    def __init__(self, account_sid: str, auth_token: str, from_number: str):
        self.from_number = from_number
        self._client = Client(account_sid, auth_token) if account_sid and auth_token else None

    @property
    def configured(self) -> bool:
        return self._client is not None and bool(self.from_number)

    async def send(self, to: str, body: str) -> str | None:
        if not self.configured:
            logger.info(f"SMS not configured; skipping message to {to[-4:]}")
            return None
        try:
            message = await asyncio.to_thread(
                self._client.messages.create, to=to, from_=self.from_number, body=body,
            )
        except TwilioException as e:
            logger.error(f"Twilio send failed: {e}")
            return None
        return message.sid


def get_sms_gateway() -> SmsGateway:
    settings = get_settings()
    return SmsGateway(
        settings.twilio_account_sid, settings.twilio_auth_token, settings.twilio_from_number,
    )


def validate_signature(url: str, params: dict, signature: str | None) -> bool:
    settings = get_settings()
    if not settings.twilio_validate_signatures:
        return True
    if not signature or not settings.twilio_auth_token:
        return False
    return RequestValidator(settings.twilio_auth_token).validate(url, params, signature)
