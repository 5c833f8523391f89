import logging
import smtplib
from email.message import EmailMessage

from core.config import settings

logger = logging.getLogger(__name__)


def send_password_reset_email(to_address: str, reset_url: str) -> bool:
    """Blocking SMTP send. Returns False when no SMTP host is configured."""
    if not settings.SMTP_HOST:
        logger.warning("SMTP_HOST is not configured, password reset email not sent")
        return False

    message = EmailMessage()
    message["Subject"] = "Reset your AdHub password"
    message["From"] = settings.MAIL_FROM
    message["To"] = to_address
    message.set_content(
        "We received a request to reset your AdHub password.\n\n"
        f"Follow this link to choose a new one:\n{reset_url}\n\n"
        f"The link expires in {settings.PASSWORD_RESET_EXPIRE_MINUTES} minutes. "
        "If you did not ask for a reset, you can ignore this email.\n"
    )

    with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT) as smtp:
        smtp.starttls()
        if settings.SMTP_USERNAME:
            smtp.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD or "")
        smtp.send_message(message)
    logger.info("Password reset email sent")
    return True
