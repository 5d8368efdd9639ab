"""Verification email composition."""

from datetime import timedelta
from email.message import EmailMessage

SUBJECT = "Email Verification Required"

_TEXT_BODY = """\
Email Verification

Thank you for submitting your email address. Please visit the following link to verify your email:

{link}

This link will expire after {validity} for security reasons.
"""

_HTML_BODY = """\
<html>
<body>
    <h2>Email Verification</h2>
    <p>Thank you for submitting your email address. Please click the link below to verify your email:</p>
    <p><a href="{link}">Verify Email</a></p>
    <p>If the link doesn't work, copy and paste this address into your browser:</p>
    <p>{link}</p>
    <p>This link will expire after {validity} for security reasons.</p>
</body>
</html>
"""


def describe_window(window: timedelta) -> str:
    """Render a validity window as e.g. '24 hours', '5 minutes' or '90 seconds'."""
    seconds = int(window.total_seconds())
    for unit, size in (("hour", 3600), ("minute", 60)):
        if seconds >= size and seconds % size == 0:
            count = seconds // size
            return f"{count} {unit}{'s' if count != 1 else ''}"
    return f"{seconds} second{'s' if seconds != 1 else ''}"


def build_verification_message(
    sender: str, recipient: str, verification_url: str, window: timedelta
) -> EmailMessage:
    """Build a multipart/alternative message with plain-text and HTML bodies."""
    validity = describe_window(window)

    msg = EmailMessage()
    msg["Subject"] = SUBJECT
    msg["From"] = sender
    msg["To"] = recipient
    msg.set_content(_TEXT_BODY.format(link=verification_url, validity=validity))
    msg.add_alternative(
        _HTML_BODY.format(link=verification_url, validity=validity), subtype="html"
    )
    return msg
