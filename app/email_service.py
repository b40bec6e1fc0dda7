"""
Email Service using SMTP (primary) and Resend (fallback) with MJML templates
All email templates use MJML for responsive, cross-client compatible emails
"""

import logging
import smtplib
import ssl
from datetime import datetime
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr
from typing import Optional, Union

import resend
from mjml import mjml_to_html

from .config import (
    EMAIL_FROM_ADDRESS,
    KINDERGARTEN_NAME,
    RESEND_API_KEY,
    SMTP_FROM,
    SMTP_HOST,
    SMTP_PASS,
    SMTP_PORT,
    SMTP_SECURE,
    SMTP_TIMEOUT,
    SMTP_USER,
)
from .email_templates import (
    deletion_confirmation_template,
    deletion_confirmation_text,
    reservation_confirmation_template,
    reservation_confirmation_text,
)

logger = logging.getLogger(__name__)

# Initialize Resend as fallback
resend.api_key = RESEND_API_KEY


class EmailError(Exception):
    """Base class for email delivery failures"""


class EmailNotConfiguredError(EmailError):
    """Neither SMTP credentials nor a Resend API key are configured"""


class EmailSendError(EmailError):
    """The configured transport rejected or failed to deliver the message"""


def smtp_configured() -> bool:
    return bool(SMTP_USER and SMTP_PASS)


def email_configured() -> bool:
    return smtp_configured() or bool(RESEND_API_KEY)


def get_sender_email() -> str:
    """Display name of the kindergarten plus the configured sender address"""
    address = SMTP_FROM if smtp_configured() else EMAIL_FROM_ADDRESS
    return formataddr((KINDERGARTEN_NAME, address))


def compile_mjml_to_html(mjml_content: str) -> str:
    """Compile MJML template to production-ready HTML"""
    try:
        result = mjml_to_html(mjml_content)
    except Exception as e:
        logger.error(f"MJML compilation error: {e}")
        raise EmailSendError(f"Failed to compile MJML template: {str(e)}") from e

    # mjml_to_html returns a dict-like result with 'html' and 'errors' keys
    if isinstance(result, dict):
        if result.get("errors"):
            logger.warning(f"MJML compilation warnings: {result['errors']}")
        return result.get("html", "")
    if hasattr(result, "html"):
        if getattr(result, "errors", None):
            logger.warning(f"MJML compilation warnings: {result.errors}")
        return result.html
    return str(result)


def build_message(
    recipients: list[str], subject: str, html_content: str, text_content: Optional[str], sender: str
) -> MIMEMultipart:
    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = sender
    msg["To"] = ", ".join(recipients)

    # Plain text first so clients prefer the HTML part
    if text_content:
        msg.attach(MIMEText(text_content, "plain", "utf-8"))
    msg.attach(MIMEText(html_content, "html", "utf-8"))
    return msg


def send_via_smtp(
    to: Union[str, list[str]],
    subject: str,
    html_content: str,
    text_content: Optional[str] = None,
    from_address: Optional[str] = None,
) -> dict:
    """Send email via the configured SMTP server (port 465 uses SSL, others STARTTLS)"""
    recipients = [to] if isinstance(to, str) else to
    sender = from_address or get_sender_email()
    msg = build_message(recipients, subject, html_content, text_content, sender)

    try:
        context = ssl.create_default_context()
        use_ssl = SMTP_SECURE or SMTP_PORT == 465
        if use_ssl:
            server = smtplib.SMTP_SSL(SMTP_HOST, SMTP_PORT, context=context, timeout=SMTP_TIMEOUT)
        else:
            server = smtplib.SMTP(SMTP_HOST, SMTP_PORT, timeout=SMTP_TIMEOUT)

        # Closes the connection even when STARTTLS or login fails
        with server:
            if not use_ssl:
                server.starttls(context=context)
            server.login(SMTP_USER, SMTP_PASS)
            server.sendmail(SMTP_FROM, recipients, msg.as_string())
    except (smtplib.SMTPException, OSError) as e:
        logger.error(f"❌ SMTP send failed via {SMTP_HOST}:{SMTP_PORT}: {e}")
        raise EmailSendError(f"SMTP failed: {str(e)}") from e

    logger.info(f"✅ SMTP email sent successfully via {SMTP_HOST}")
    return {"id": f"smtp-{datetime.now().timestamp()}", "success": True, "provider": "smtp"}


async def send_email(
    to: Union[str, list[str]],
    subject: str,
    mjml_content: str,
    text_content: Optional[str] = None,
    from_address: Optional[str] = None,
) -> dict:
    """
    Send an email using SMTP (if configured) or Resend (fallback)

    Args:
        to: Recipient email(s)
        subject: Email subject line
        mjml_content: MJML template content (will be compiled to HTML)
        text_content: Plain-text alternative
        from_address: Optional custom from address

    Returns:
        Send response dict

    Raises:
        EmailNotConfiguredError: no transport configured
        EmailSendError: every configured transport failed
    """
    html_content = compile_mjml_to_html(mjml_content)
    recipients = [to] if isinstance(to, str) else to

    if smtp_configured():
        try:
            logger.info(f"📧 Sending email via SMTP: {SMTP_HOST}")
            return send_via_smtp(recipients, subject, html_content, text_content, from_address)
        except EmailSendError as e:
            if not RESEND_API_KEY:
                raise
            logger.warning(f"⚠️ SMTP failed, falling back to Resend: {e}")

    if not RESEND_API_KEY:
        logger.error("❌ No email service configured - SMTP credentials and RESEND_API_KEY missing")
        raise EmailNotConfiguredError("Email service not configured")

    try:
        logger.info(f"📧 Sending email via Resend to: {recipients}")
        email_data = {
            "from": from_address or formataddr((KINDERGARTEN_NAME, EMAIL_FROM_ADDRESS)),
            "to": recipients,
            "subject": subject,
            "html": html_content,
        }
        if text_content:
            email_data["text"] = text_content

        response = resend.Emails.send(email_data)
        logger.info(f"✅ Email sent successfully via Resend: {response}")
        return response
    except Exception as e:
        logger.error(f"❌ Email send error to {recipients}: {e}")
        raise EmailSendError(f"Failed to send email: {str(e)}") from e


# ============================================
# Pre-built emails
# Arguments are plain values so these can run after the request's
# database session has been closed
# ============================================


async def send_reservation_confirmation(
    to: str,
    first_name: str,
    last_name: str,
    reservation_id: str,
    magazine_title: str,
    issue_number: str,
    quantity: int,
    delivery_method: str,
    reservation_date: datetime,
    pickup_location: Optional[str] = None,
    payment_method: Optional[str] = None,
    order_group_picture: bool = False,
    child_group_name: Optional[str] = None,
    order_vorschul_picture: bool = False,
    child_name: Optional[str] = None,
) -> dict:
    """Send the reservation confirmation to the parent"""
    template_args = dict(
        first_name=first_name,
        last_name=last_name,
        reservation_id=reservation_id,
        magazine_title=magazine_title,
        issue_number=issue_number,
        quantity=quantity,
        delivery_method=delivery_method,
        reservation_date=reservation_date,
        pickup_location=pickup_location,
        payment_method=payment_method,
        order_group_picture=order_group_picture,
        child_group_name=child_group_name,
        order_vorschul_picture=order_vorschul_picture,
        child_name=child_name,
    )
    return await send_email(
        to=to,
        subject=f"Reservierungsbestätigung - {magazine_title}",
        mjml_content=reservation_confirmation_template(**template_args),
        text_content=reservation_confirmation_text(**template_args),
    )


async def send_deletion_confirmation(to: str, first_name: str, deletion_timestamp: datetime) -> dict:
    """Confirm a completed GDPR deletion to the captured address"""
    return await send_email(
        to=to,
        subject="Bestätigung: Ihre Daten wurden gelöscht",
        mjml_content=deletion_confirmation_template(first_name, deletion_timestamp),
        text_content=deletion_confirmation_text(first_name, deletion_timestamp),
    )
