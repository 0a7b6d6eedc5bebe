"""
SMS relay through Twilio.
"""
import logging
from typing import Optional

import requests
from twilio.base.exceptions import TwilioException
from twilio.rest import Client

from . import config
from .errors import SmsError

logger = logging.getLogger(__name__)


class SmsSender:
    """Sends text messages from the configured Twilio number.

    The Twilio client is created on first use so that missing credentials
    only fail the send, not server startup.
    """

    def __init__(
        self,
        account_sid: Optional[str] = config.TWILIO_ACCOUNT_SID,
        auth_token: Optional[str] = config.TWILIO_AUTH_TOKEN,
        from_number: Optional[str] = config.TWILIO_PHONE_NUMBER,
        client: Optional[Client] = None,
    ):
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.from_number = from_number
        self._client = client

    @property
    def client(self) -> Client:
        if self._client is None:
            if not self.account_sid or not self.auth_token:
                raise SmsError("Twilio credentials are not configured")
            self._client = Client(self.account_sid, self.auth_token)
        return self._client

    def send(self, to: str, body: str) -> str:
        """Send ``body`` to ``to`` and return the provider message SID."""
        if not self.from_number:
            raise SmsError("Twilio sender number is not configured")
        try:
            message = self.client.messages.create(body=body, from_=self.from_number, to=to)
        except (TwilioException, requests.RequestException) as e:
            raise SmsError(str(e)) from e
        logger.info(f"SMS sent: {message.sid}")
        return message.sid
