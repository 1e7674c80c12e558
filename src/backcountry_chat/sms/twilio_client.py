"""Client for sending SMS through the Twilio REST API."""

import logging
from typing import Optional

from twilio.base.exceptions import TwilioRestException
from twilio.http.async_http_client import AsyncTwilioHttpClient
from twilio.rest import Client

from backcountry_chat.config import TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN, TWILIO_TIMEOUT_SECONDS
from backcountry_chat.sms.models import SmsSendResult

logger = logging.getLogger(__name__)

# Status of a successful POST to the Messages resource
MESSAGE_CREATED_STATUS = 201


class TwilioSmsClient:
    """Async wrapper around the Twilio Messages resource."""

    def __init__(
        self,
        account_sid: str = TWILIO_ACCOUNT_SID,
        auth_token: str = TWILIO_AUTH_TOKEN,
        client: Optional[Client] = None
    ):
        """Initialize the SMS client.

        Args:
            account_sid: Twilio account SID
            auth_token: Twilio auth token
            client: Optional Twilio REST client (used by tests). When None, a
                client on the SDK's aiohttp transport is created.
        """
        self.http_client: Optional[AsyncTwilioHttpClient] = None
        if client is None:
            self.http_client = AsyncTwilioHttpClient(timeout=TWILIO_TIMEOUT_SECONDS)
            client = Client(account_sid, auth_token, http_client=self.http_client)
        self.client = client

    async def send_message(self, to: str, from_: str, body: str) -> SmsSendResult:
        """Send one SMS.

        The status is reported, not interpreted: a message Twilio rejects is
        not retried, only a request that got no response at all.

        Args:
            to: Recipient number
            from_: Sending number
            body: Message text

        Returns:
            HTTP status and message details, or Twilio's error for a rejected message

        Raises:
            Exception: Transport errors of the HTTP client when no response was received
        """
        logger.info(f"Sending {len(body)} character SMS to {to}")
        try:
            message = await self.client.messages.create_async(to=to, from_=from_, body=body)
        except TwilioRestException as e:
            logger.warning(f"Twilio rejected SMS to {to}: {e.status} {e.code} {e.msg}")
            return SmsSendResult(status_code=e.status, body={"code": e.code, "message": e.msg})

        return SmsSendResult(
            status_code=MESSAGE_CREATED_STATUS,
            body={"sid": message.sid, "status": message.status}
        )

    async def aclose(self):
        """Close the SDK's HTTP session, when this client created it."""
        if self.http_client is not None:
            await self.http_client.close()
