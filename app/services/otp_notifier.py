"""
app/services/otp_notifier.py

Purpose: Deliver registration OTPs

- Handler for the pending_users on-create trigger
- Email via SendGrid, SMS via Twilio (whichever contact details exist)
- Never raises: failures are logged and not retried
"""

from typing import Any, Dict, Optional

from app.core.config import settings
from app.core.logging import get_logger, LogContext
from app.services.sendgrid_service import SendGridService
from app.services.twilio_service import TwilioService
from utils.constants import OTP_EMAIL_HTML, OTP_EMAIL_SUBJECT, OTP_EMAIL_TEXT, OTP_SMS_TEXT

logger = get_logger(__name__)


class OtpNotifier:

    def __init__(
        self,
        email_service: Optional[SendGridService] = None,
        sms_service: Optional[TwilioService] = None,
        expiry_minutes: Optional[int] = None,
    ):
        self.email_service = email_service or SendGridService()
        self.sms_service = sms_service or TwilioService()
        self.expiry_minutes = expiry_minutes or settings.OTP_EXPIRY_MINUTES

    async def __call__(self, pending: Dict[str, Any]) -> Dict[str, Any]:
        return await self.notify(pending)

    async def notify(self, pending: Dict[str, Any]) -> Dict[str, Any]:
        """
        Sends the OTP of a new pending registration.

        Returns:
            Per-channel results, e.g. {"email": {...}, "sms": {...}}
        """
        email = pending.get("email")
        phone = pending.get("phone")
        otp = pending.get("otp")
        full_name = pending.get("full_name") or "User"

        results: Dict[str, Any] = {}

        with LogContext(path=f"pending_users/{pending.get('id')}"):
            if not otp or not (email or phone):
                logger.error("Pending registration is missing contact details or OTP")
                return results

            values = {"full_name": full_name, "otp": otp, "minutes": self.expiry_minutes}

            if email:
                results["email"] = await self.email_service.send_email(
                    to_email=email,
                    subject=OTP_EMAIL_SUBJECT,
                    text=OTP_EMAIL_TEXT.format(**values),
                    html=OTP_EMAIL_HTML.format(**values),
                )

            if phone:
                results["sms"] = await self.sms_service.send_sms(phone, OTP_SMS_TEXT.format(**values))

            failed = [channel for channel, result in results.items() if not result.get("success")]
            if failed:
                logger.error(f"OTP delivery failed on: {', '.join(failed)}")
            else:
                logger.info(f"OTP sent via {', '.join(results)}")

        return results
