"""
Email Service using Resend
Provides email functionality using MJML templates for responsive design
"""

import logging
from datetime import datetime
from typing import Optional, Union

import resend
from mjml import mjml_to_html

from .config import ADMIN_NOTIFICATION_EMAIL, EMAIL_FROM_ADDRESS, PRACTICE_NAME, RESEND_API_KEY
from .domain.scheduling.time_slots import display_time as format_time
from .email_templates import (
    appointment_cancelled_template,
    appointment_confirmation_template,
    appointment_reminder_template,
    appointment_rescheduled_template,
    appointment_status_template,
    contact_auto_response_template,
    contact_notification_template,
    contact_reply_template,
    welcome_verification_template,
)

logger = logging.getLogger(__name__)

resend.api_key = RESEND_API_KEY


def compile_mjml_to_html(mjml_content: str) -> str:
    """Compile MJML template to production-ready HTML"""
    try:
        result = mjml_to_html(mjml_content)
        # Depending on the mjml release the result is a dict-like object or a string
        if isinstance(result, dict):
            if result.get("errors"):
                logger.warning(f"MJML compilation warnings: {result['errors']}")
            return result.get("html", "")
        html = getattr(result, "html", None)
        if html is not None:
            return html
        return str(result)
    except Exception as e:
        logger.error(f"MJML compilation error: {e}")
        raise Exception(f"Failed to compile MJML template: {str(e)}") from e


def format_date(value: datetime) -> str:
    """'Monday, March 3, 2025'"""
    return f"{value.strftime('%A, %B')} {value.day}, {value.year}"


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
        Send response dict
    """
    html_content = compile_mjml_to_html(mjml_content)

    recipients = [to] if isinstance(to, str) else to
    sender = from_address or EMAIL_FROM_ADDRESS

    if not RESEND_API_KEY:
        logger.error("❌ No email service configured - RESEND_API_KEY missing")
        raise Exception("Email service not configured")

    try:
        logger.info(f"📧 Sending email via Resend to: {recipients}")
        response = resend.Emails.send(
            {
                "from": sender,
                "to": recipients,
                "subject": subject,
                "html": html_content,
            }
        )
        logger.info(f"✅ Email sent successfully via Resend: {response}")
        return response
    except Exception as e:
        logger.error(f"❌ Email send error to {recipients}: {e}")
        raise Exception(f"Failed to send email: {str(e)}") from e


# ============================================
# Pre-built emails for practice events
# ============================================


async def send_welcome_verification_email(to: str, user_name: str, verification_link: str) -> dict:
    return await send_email(
        to=to,
        subject=f"Welcome to {PRACTICE_NAME} - please verify your email",
        mjml_content=welcome_verification_template(user_name, verification_link),
    )


async def send_appointment_confirmation(
    to: str,
    client_name: str,
    service_title: str,
    date_time: datetime,
    duration: int,
    price: str,
    custom_message: Optional[str] = None,
) -> dict:
    return await send_email(
        to=to,
        subject=f"Appointment request received - {format_date(date_time)}",
        mjml_content=appointment_confirmation_template(
            client_name, service_title, format_date(date_time), format_time(date_time), duration, price, custom_message
        ),
    )


async def send_appointment_rescheduled(
    to: str,
    client_name: str,
    service_title: str,
    old_date_time: datetime,
    new_date_time: datetime,
    duration: int,
    fee_message: Optional[str] = None,
) -> dict:
    return await send_email(
        to=to,
        subject=f"Appointment rescheduled to {format_date(new_date_time)}",
        mjml_content=appointment_rescheduled_template(
            client_name,
            service_title,
            format_date(old_date_time),
            format_time(old_date_time),
            format_date(new_date_time),
            format_time(new_date_time),
            duration,
            fee_message,
        ),
    )


async def send_appointment_cancelled(
    to: str,
    client_name: str,
    service_title: str,
    date_time: datetime,
    policy_message: Optional[str] = None,
    refund_amount: Optional[str] = None,
) -> dict:
    return await send_email(
        to=to,
        subject="Appointment cancelled",
        mjml_content=appointment_cancelled_template(
            client_name,
            service_title,
            format_date(date_time),
            format_time(date_time),
            policy_message,
            refund_amount,
        ),
    )


async def send_appointment_status_update(
    to: str,
    client_name: str,
    service_title: str,
    date_time: datetime,
    duration: int,
    status: str,
) -> dict:
    return await send_email(
        to=to,
        subject=f"Your appointment is {status.replace('_', ' ').lower()}",
        mjml_content=appointment_status_template(
            client_name, service_title, format_date(date_time), format_time(date_time), duration, status
        ),
    )


async def send_appointment_reminder(
    to: str,
    client_name: str,
    service_title: str,
    date_time: datetime,
    duration: int,
    custom_message: Optional[str] = None,
) -> dict:
    return await send_email(
        to=to,
        subject=f"Reminder: your {service_title} session on {format_date(date_time)}",
        mjml_content=appointment_reminder_template(
            client_name, service_title, format_date(date_time), format_time(date_time), duration, custom_message
        ),
    )


async def send_contact_notification(
    name: str,
    email: str,
    phone: Optional[str],
    subject: str,
    message: str,
) -> dict:
    return await send_email(
        to=ADMIN_NOTIFICATION_EMAIL,
        subject=f"New contact form message: {subject}",
        mjml_content=contact_notification_template(name, email, phone, subject, message),
    )


async def send_contact_auto_response(to: str, name: str, subject: str) -> dict:
    return await send_email(
        to=to,
        subject=f"We received your message - {PRACTICE_NAME}",
        mjml_content=contact_auto_response_template(name, subject),
    )


async def send_contact_reply(to: str, name: str, subject: str, response: str) -> dict:
    return await send_email(
        to=to,
        subject=f"Re: {subject}",
        mjml_content=contact_reply_template(name, subject, response),
    )
