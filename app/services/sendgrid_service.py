"""
app/services/sendgrid_service.py

Purpose: SendGrid email sending

- Sends transactional email (plain text and HTML) via the SendGrid v3 API
"""

import httpx
from typing import Dict, Any, Optional
from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger(__name__)

SENDGRID_SEND_URL = "https://api.sendgrid.com/v3/mail/send"


class SendGridService:
    """Service for sending email via SendGrid"""

    def __init__(
        self,
        api_key: Optional[str] = None,
        from_email: Optional[str] = None,
        from_name: Optional[str] = None,
        timeout: float = 10.0,
    ):
        self.api_key = api_key or settings.SENDGRID_API_KEY
        self.from_email = from_email or settings.SENDGRID_FROM_EMAIL
        self.from_name = from_name or settings.SENDGRID_FROM_NAME
        self.timeout = timeout

    async def send_email(self, to_email: str, subject: str, text: str, html: Optional[str] = None) -> Dict[str, Any]:
        """
        Sends one email.

        Returns:
            {"success": True/False, "message_id": ..., "error": ...}
        """
        if not self.is_configured():
            logger.warning("SendGrid is not configured, email not sent")
            return {"success": False, "error": "SendGrid not configured"}

        content = [{"type": "text/plain", "value": text}]
        if html:
            content.append({"type": "text/html", "value": html})

        payload = {
            "personalizations": [{"to": [{"email": to_email}]}],
            "from": {"email": self.from_email, "name": self.from_name},
            "subject": subject,
            "content": content,
        }

        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(
                    SENDGRID_SEND_URL,
                    json=payload,
                    headers={"Authorization": f"Bearer {self.api_key}"},
                    timeout=self.timeout
                )

            # SendGrid answers 202 Accepted on success
            if response.status_code in [200, 202]:
                message_id = response.headers.get("X-Message-Id")
                logger.info(f"✅ Email accepted: id={message_id}")
                return {"success": True, "message_id": message_id}

            logger.error(f"❌ SendGrid API error: {response.status_code} - {response.text}")
            return {
                "success": False,
                "error": f"SendGrid API error: {response.status_code}"
            }

        except httpx.TimeoutException:
            logger.error("SendGrid API timeout")
            return {"success": False, "error": "SendGrid API timeout"}
        except httpx.HTTPError as e:
            logger.error(f"Error sending email: {e}", exc_info=True)
            return {"success": False, "error": str(e)}

    def is_configured(self) -> bool:
        return bool(self.api_key and self.from_email)
