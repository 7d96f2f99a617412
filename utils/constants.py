"""
utils/constants.py

Purpose: Centralized static content

- User-facing messages returned by the API
- OTP email and SMS templates
- Record status values

(Prevents hardcoding across the codebase)
"""

# ============================================================
# RECORD STATUS VALUES
# ============================================================

QARZ_PENDING = "Pending"
QARZ_PAID = "Paid"

AMANAT_ENTRUSTED = "Entrusted"
AMANAT_RETURNED = "Returned"

WASIYAT_AI = "ai"
WASIYAT_MANUAL = "manual"

# ============================================================
# AI ACTION FAILURES
# ============================================================

GENERATE_WILL_FAILED = "Failed to generate will draft."
COMPLIANCE_TIPS_FAILED = "Failed to get compliance tips."
CHAT_FAILED = "Failed to get a response from the assistant."

# ============================================================
# REGISTRATION
# ============================================================

REGISTRATION_PENDING_MESSAGE = "A verification code has been sent. It expires in {minutes} minutes."
OTP_REJECTED_MESSAGE = "The verification code is invalid or has expired."
EMAIL_ALREADY_REGISTERED = "An account with this email already exists."
INVALID_CREDENTIALS_MESSAGE = "Invalid email or password."

# ============================================================
# OTP NOTIFICATIONS
# ============================================================

OTP_EMAIL_SUBJECT = "Zimmah Account Verification"

OTP_EMAIL_TEXT = """Hello {full_name},

Thank you for signing up with Zimmah!

To complete your registration and activate your account, please use the verification code below:

🔑 Your OTP Code: {otp}

This code will expire in {minutes} minutes. If you did not request this, please ignore this email.

Welcome to Zimmah,
The Zimmah Team"""

OTP_EMAIL_HTML = """<!DOCTYPE html>
<html>
  <body style="font-family: Arial, sans-serif; color: #333;">
    <h2 style="color:#228B22;">Welcome to Zimmah</h2>
    <p>Hello <strong>{full_name}</strong>,</p>
    <p>Thank you for signing up with <b>Zimmah</b>!</p>
    <p>To complete your registration and activate your account, please use the verification code below:</p>
    <div style="padding:10px; background:#f3f4f6; border-radius:6px; display:inline-block; margin:15px 0;">
      <h1 style="color:#111; letter-spacing:3px;">{otp}</h1>
    </div>
    <p>This code will expire in <b>{minutes} minutes</b>. If you did not request this, please ignore this email.</p>
    <p>Welcome to Zimmah,<br/>The Zimmah Team</p>
  </body>
</html>"""

OTP_SMS_TEXT = "Zimmah: your verification code is {otp}. It expires in {minutes} minutes."

# ============================================================
# WASIYAT
# ============================================================

WITNESS_SECTION_HEADING = "**7. Witnesses**"

WITNESS_SECTION_INTRO = (
    "This Wasiyat is made and signed in the presence of the following witnesses, "
    "who affirm that the Testator executed this document willingly and in full awareness."
)

WITNESS_ENTRY = "Witness {number}:\nName: {name}\nCNIC: {cnic}\nSignature: ___________________________"
