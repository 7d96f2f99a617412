"""
app/services/twilio_service.py

Purpose: Twilio SMS sending

- Sends plain SMS messages via the Twilio REST API
- Used to deliver registration OTPs to phone numbers
"""

import httpx
from typing import Dict, Any, Optional
from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger(__name__)


class TwilioService:
    """Service for sending SMS via Twilio"""

    def __init__(
        self,
        account_sid: Optional[str] = None,
        auth_token: Optional[str] = None,
        from_number: Optional[str] = None,
        timeout: float = 10.0,
    ):
        self.account_sid = account_sid or settings.TWILIO_ACCOUNT_SID
        self.auth_token = auth_token or settings.TWILIO_AUTH_TOKEN
        self.from_number = from_number or settings.TWILIO_SMS_NUMBER
        self.timeout = timeout
        self.base_url = f"https://api.twilio.com/2010-04-01/Accounts/{self.account_sid}"

    async def send_sms(self, to_phone: str, message: str) -> Dict[str, Any]:
        """
        Sends an SMS via Twilio

        Args:
            to_phone: Recipient phone in E.164 format (+923001234567)
            message: Message text

        Returns:
            {
                "success": True/False,
                "message_sid": "SMxxx...",
                "error": "Optional error message"
            }
        """
        if not self.is_configured():
            logger.warning("Twilio is not configured, SMS not sent")
            return {"success": False, "error": "Twilio not configured"}

        url = f"{self.base_url}/Messages.json"
        data = {
            "From": self.from_number,
            "To": to_phone,
            "Body": message
        }

        try:
            logger.info(f"📤 Sending SMS to {to_phone[:4]}****")

            async with httpx.AsyncClient() as client:
                response = await client.post(
                    url,
                    data=data,
                    auth=(self.account_sid, self.auth_token),
                    timeout=self.timeout
                )

            if response.status_code in [200, 201]:
                result = response.json()
                logger.info(f"✅ SMS sent: SID={result.get('sid')}")
                return {
                    "success": True,
                    "message_sid": result.get("sid"),
                    "status": result.get("status")
                }

            logger.error(f"❌ Twilio API error: {response.status_code} - {response.text}")
            return {
                "success": False,
                "error": f"Twilio API error: {response.status_code}"
            }

        except httpx.TimeoutException:
            logger.error("Twilio API timeout")
            return {"success": False, "error": "Twilio API timeout"}
        except httpx.HTTPError as e:
            logger.error(f"Error sending SMS: {e}", exc_info=True)
            return {"success": False, "error": str(e)}

    def is_configured(self) -> bool:
        """Check if Twilio is properly configured"""
        return bool(self.account_sid and self.auth_token and self.from_number)
