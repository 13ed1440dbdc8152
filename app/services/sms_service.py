"""
app/services/sms_service.py

Purpose: Verification SMS delivery

- Sends SMS via the Twilio Messages REST API
- Returns a result dict instead of raising; callers decide what a failure means
- Notifier interface so tests can swap in a double
"""

import httpx
from abc import ABC, abstractmethod
from typing import Dict, Any, Optional
from app.core.config import settings
from app.core.logging import get_logger, mask_phone

logger = get_logger(__name__)


class SMSNotifier(ABC):
    """Delivery channel for verification codes."""

    @abstractmethod
    async def send(self, to_phone: str, message: str) -> Dict[str, Any]:
        """
        Sends a text message.

        Returns:
            {
                "success": True/False,
                "message_sid": "SMxxx...",
                "error": "Optional error message"
            }
        """


class TwilioSMSNotifier(SMSNotifier):
    """Sends SMS through Twilio."""

    def __init__(
        self,
        account_sid: Optional[str],
        auth_token: Optional[str],
        from_number: Optional[str],
        timeout: float = 10.0
    ):
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.from_number = from_number
        self.timeout = timeout
        self.base_url = f"https://api.twilio.com/2010-04-01/Accounts/{account_sid}"

    @classmethod
    def from_settings(cls) -> "TwilioSMSNotifier":
        return cls(
            account_sid=settings.TWILIO_ACCOUNT_SID,
            auth_token=settings.TWILIO_AUTH_TOKEN,
            from_number=settings.TWILIO_PHONE_NUMBER,
            timeout=settings.TWILIO_TIMEOUT_SECONDS,
        )

    def is_configured(self) -> bool:
        """Check if Twilio is properly configured"""
        return bool(
            self.account_sid
            and self.account_sid.startswith("AC")
            and self.auth_token
            and self.from_number
        )

    async def send(self, to_phone: str, message: str) -> Dict[str, Any]:
        if not self.is_configured():
            logger.warning("Twilio credentials not properly configured")
            return {
                "success": False,
                "error": "SMS provider not configured"
            }

        try:
            url = f"{self.base_url}/Messages.json"
            data = {
                "From": self.from_number,
                "To": to_phone,
                "Body": message
            }

            logger.info(f"📤 Sending verification SMS to {mask_phone(to_phone)}")

            async with httpx.AsyncClient() as client:
                response = await client.post(
                    url,
                    data=data,
                    auth=(self.account_sid, self.auth_token),
                    timeout=self.timeout
                )

                if response.status_code in [200, 201]:
                    # Accepted even if the body is not the expected JSON
                    try:
                        result = response.json()
                    except ValueError:
                        logger.warning("Twilio accepted the message but returned a non-JSON body")
                        result = {}
                    logger.info(f"✅ SMS sent: SID={result.get('sid')}")

                    return {
                        "success": True,
                        "message_sid": result.get("sid"),
                        "status": result.get("status")
                    }
                else:
                    logger.error(f"❌ Twilio API error: {response.status_code} - {response.text}")

                    return {
                        "success": False,
                        "error": f"Twilio API error: {response.status_code}"
                    }

        except httpx.TimeoutException:
            logger.error("Twilio API timeout")
            return {
                "success": False,
                "error": "Twilio API timeout"
            }
        except httpx.HTTPError as e:
            logger.error(f"Error sending SMS: {e}", exc_info=True)
            return {
                "success": False,
                "error": str(e)
            }
        except Exception as e:
            logger.error(f"Unexpected error sending SMS: {e}", exc_info=True)
            return {
                "success": False,
                "error": str(e)
            }


# Singleton instance
sms_notifier = TwilioSMSNotifier.from_settings()
