"""
Email Service using Resend
Provides email functionality using MJML templates for responsive design
"""

import logging
from typing import Optional, Union

import resend
from mjml import mjml_to_html

from .config import EMAIL_FROM_ADDRESS, FRONTEND_URL, RESEND_API_KEY
from .email_templates import (
    notification_email_template,
    quotation_sent_template,
    team_invite_template,
    ticket_status_template,
)

logger = logging.getLogger(__name__)

resend.api_key = RESEND_API_KEY


class EmailNotConfiguredError(RuntimeError):
    """Raised when no transactional email provider is configured"""


def compile_mjml_to_html(mjml_content: str) -> str:
    """Compile MJML template to production-ready HTML"""
    try:
        result = mjml_to_html(mjml_content)
        # mjml_to_html returns a dict-like result with 'html' and 'errors'
        if isinstance(result, dict):
            if result.get("errors"):
                logger.warning(f"MJML compilation warnings: {result['errors']}")
            return result.get("html", "")
        html = getattr(result, "html", None)
        if html is not None:
            if getattr(result, "errors", None):
                logger.warning(f"MJML compilation warnings: {result.errors}")
            return html
        return str(result)
    except Exception as e:
        logger.error(f"MJML compilation error: {e}")
        raise RuntimeError(f"Failed to compile MJML template: {str(e)}") from e


async def send_email(
    to: Union[str, list[str]],
    subject: str,
    mjml_content: str,
    from_address: Optional[str] = None,
) -> dict:
    """
    Send an email through Resend

    Args:
        to: Recipient email(s)
        subject: Email subject line
        mjml_content: MJML template content (will be compiled to HTML)
        from_address: Optional custom from address

    Returns:
        Resend response dict

    Raises:
        EmailNotConfiguredError: RESEND_API_KEY is missing
    """
    if not RESEND_API_KEY:
        logger.error("❌ No email service configured - RESEND_API_KEY missing")
        raise EmailNotConfiguredError("Email service not configured")

    html_content = compile_mjml_to_html(mjml_content)
    recipients = [to] if isinstance(to, str) else to

    try:
        logger.info(f"📧 Sending email via Resend to: {recipients}")
        response = resend.Emails.send(
            {
                "from": from_address or EMAIL_FROM_ADDRESS,
                "to": recipients,
                "subject": subject,
                "html": html_content,
            }
        )
        logger.info(f"✅ Email sent successfully via Resend: {response}")
        return response
    except Exception as e:
        logger.error(f"❌ Email send error to {recipients}: {e}")
        raise RuntimeError(f"Failed to send email: {str(e)}") from e


# ============================================
# Pre-built emails for common events
# ============================================


async def send_notification_email(to: str, title: str, body: str, action_url: Optional[str] = None) -> dict:
    """Mirror an in-app notification to the recipient's inbox"""
    if action_url and action_url.startswith("/"):
        action_url = f"{FRONTEND_URL}{action_url}"
    return await send_email(
        to=to,
        subject=title,
        mjml_content=notification_email_template(title, body, action_url),
    )


async def send_ticket_status_email(
    to: str,
    ticket_id: int,
    ticket_title: str,
    new_status: str,
    unit_name: Optional[str] = None,
    notes: Optional[str] = None,
) -> dict:
    return await send_email(
        to=to,
        subject=f"Ticket #{ticket_id}: {new_status.replace('_', ' ')}",
        mjml_content=ticket_status_template(
            ticket_id=ticket_id,
            ticket_title=ticket_title,
            new_status=new_status,
            unit_name=unit_name,
            notes=notes,
            ticket_url=f"{FRONTEND_URL}/tickets/{ticket_id}",
        ),
    )


async def send_quotation_email(
    to: str,
    client_name: str,
    agency_name: str,
    quotation_title: str,
    public_id: str,
    services: list[dict],
    subtotal: float,
    admin_fee: float,
    total: float,
    currency: str,
) -> dict:
    """Send a quotation to the client with the public approval link"""
    public_url = f"{FRONTEND_URL}/quotations/{public_id}"
    return await send_email(
        to=to,
        subject=f"Quotation from {agency_name}: {quotation_title}",
        mjml_content=quotation_sent_template(
            client_name=client_name,
            agency_name=agency_name,
            quotation_title=quotation_title,
            services=services,
            subtotal=subtotal,
            admin_fee=admin_fee,
            total=total,
            currency=currency,
            public_url=public_url,
        ),
    )


async def send_team_invite_email(to: str, full_name: str, agency_name: str, role: str) -> dict:
    return await send_email(
        to=to,
        subject=f"You've been added to {agency_name}",
        mjml_content=team_invite_template(full_name, agency_name, role, f"{FRONTEND_URL}/login"),
    )
