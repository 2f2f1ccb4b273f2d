from typing import Optional
import httpx
import structlog

from vesselbot.domain.context.owner_key import mask_owner_key
from vesselbot.domain.errors import DeliveryError

logger = structlog.get_logger(__name__)

TWILIO_MESSAGES_URL = "https://api.twilio.com/2010-04-01/Accounts/{sid}/Messages.json"


class TwilioMessageDeliverer:
    """Outbound WhatsApp messages through the Twilio REST API"""

    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        from_number: str,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
    ):
        self.account_sid = account_sid
        self.from_number = from_number
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._auth = httpx.BasicAuth(account_sid, auth_token)

    async def aclose(self):
        await self._client.aclose()

    async def deliver_message(self, owner_key: str, text: str) -> None:
        to = f"whatsapp:+{owner_key}"
        try:
            response = await self._client.post(
                TWILIO_MESSAGES_URL.format(sid=self.account_sid),
                data={"From": self.from_number, "To": to, "Body": text},
                auth=self._auth,
            )
        except httpx.HTTPError as e:
            raise DeliveryError(f"Twilio request failed: {e!r}") from e

        if not response.is_success:
            raise DeliveryError(f"Twilio returned status {response.status_code}: {response.text[:200]}")

        logger.info("Outbound message delivered", owner=mask_owner_key(owner_key))
