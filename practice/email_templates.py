"""
MJML Email Templates
All email templates using MJML for responsive, cross-client compatibility
"""

from typing import Optional

from .config import FRONTEND_URL, PRACTICE_NAME, PRACTICE_PHONE
from .utils.sanitization import sanitize_string, text_to_html

# Calm sage/slate palette
THEME = {
    "primary": "#5b8a72",
    "primary_dark": "#44705a",
    "primary_light": "#e3efe8",
    "background": "#f8fafc",
    "card_bg": "#ffffff",
    "text_primary": "#0f172a",
    "text_secondary": "#334155",
    "text_muted": "#64748b",
    "border": "#e2e8f0",
    "success": "#5b8a72",
    "warning": "#f59e0b",
    "danger": "#ef4444",
}


def get_base_template(
    title: str,
    preview_text: str,
    content_sections: str,
    cta_url: Optional[str] = None,
    cta_label: Optional[str] = None,
    is_client_email: bool = True,
) -> str:
    """Base MJML template wrapper for all emails"""

    cta_section = ""
    if cta_url and cta_label:
        cta_section = f"""
        <mj-section padding="20px 0">
          <mj-column>
            <mj-button
              href="{cta_url}"
              background-color="{THEME['primary']}"
              color="#ffffff"
              font-weight="600"
              border-radius="8px"
              padding="18px 40px"
              font-size="16px">
              {cta_label}
            </mj-button>
          </mj-column>
        </mj-section>
        """

    footer_notice = ""
    if is_client_email:
        footer_notice = f"""
        <mj-text align="center" font-size="12px" color="#94a3b8" padding="12px 0 0 0">
          You're receiving this because you have an account with {PRACTICE_NAME}.
          Questions? Call us at {PRACTICE_PHONE}.
        </mj-text>
        """

    return f"""
    <mjml>
      <mj-head>
        <mj-title>{title}</mj-title>
        <mj-preview>{preview_text}</mj-preview>
        <mj-attributes>
          <mj-all font-family="-apple-system, BlinkMacSystemFont, 'Segoe UI', 'Helvetica Neue', Arial, sans-serif" />
          <mj-text font-size="16px" line-height="1.6" color="{THEME['text_secondary']}" />
        </mj-attributes>
      </mj-head>
      <mj-body background-color="{THEME['background']}">
        <!-- Header -->
        <mj-section background-color="#ffffff" padding="32px 20px 0 20px">
          <mj-column>
            <mj-text align="center" font-size="20px" font-weight="600" color="{THEME['primary_dark']}">
              {PRACTICE_NAME}
            </mj-text>
            <mj-divider border-color="{THEME['border']}" border-width="1px" padding="16px 0 32px 0" />
          </mj-column>
        </mj-section>

        <!-- Main Content -->
        <mj-section background-color="#ffffff" padding="0 40px 48px 40px">
          <mj-column>
            <mj-text font-size="24px" font-weight="600" color="{THEME['text_primary']}" line-height="1.3" padding="0 0 16px 0">
              {title}
            </mj-text>

            {content_sections}
          </mj-column>
        </mj-section>

        {cta_section}

        <!-- Footer -->
        <mj-section padding="32px 20px">
          <mj-column>
            <mj-text align="center" font-size="13px" color="#94a3b8" padding="0">
              © {PRACTICE_NAME}. All rights reserved.
            </mj-text>
            {footer_notice}
          </mj-column>
        </mj-section>
      </mj-body>
    </mjml>
    """


def _appointment_details(service_title: str, scheduled_date: str, scheduled_time: str, duration: int) -> str:
    return f"""
    <mj-text align="center" font-size="16px" color="{THEME['text_primary']}" padding="16px 0 0 0">
      🗓️ <strong>{sanitize_string(service_title)}</strong> ({duration} minutes)
    </mj-text>
    <mj-text align="center" font-size="16px" color="{THEME['text_primary']}" padding="0 0 20px 0">
      📅 {scheduled_date} &nbsp; ⏰ {scheduled_time} UTC
    </mj-text>
    """


def welcome_verification_template(user_name: str, verification_link: str) -> str:
    content = f"""
    <mj-text>
      Hi {sanitize_string(user_name)},
    </mj-text>

    <mj-text>
      Welcome to {PRACTICE_NAME}. Your account has been created and you can now book
      sessions online, reschedule or cancel appointments, and keep your contact details current.
    </mj-text>

    <mj-text>
      Please confirm your email address so we can send you appointment reminders.
      This link expires in 24 hours.
    </mj-text>
    """

    return get_base_template(
        title=f"Welcome to {PRACTICE_NAME}",
        preview_text="Please verify your email address",
        content_sections=content,
        cta_url=verification_link,
        cta_label="Verify Email",
    )


def appointment_confirmation_template(
    client_name: str,
    service_title: str,
    scheduled_date: str,
    scheduled_time: str,
    duration: int,
    price: str,
    custom_message: Optional[str] = None,
) -> str:
    """Sent after a client books a session"""
    note = f"<mj-text>{text_to_html(custom_message)}</mj-text>" if custom_message else ""
    content = f"""
    <mj-text>
      Hi {sanitize_string(client_name)},
    </mj-text>

    <mj-text>
      Thank you for booking with us. Your appointment request has been received and is
      pending confirmation by our team.
    </mj-text>

    {_appointment_details(service_title, scheduled_date, scheduled_time, duration)}

    {note}

    <mj-text font-size="14px" color="{THEME['text_muted']}">
      Session fee: ${price}. Free rescheduling and full refunds are available up to 48 hours
      before your appointment.
    </mj-text>
    """

    return get_base_template(
        title="Appointment Request Received",
        preview_text=f"{service_title} on {scheduled_date}",
        content_sections=content,
        cta_url=f"{FRONTEND_URL}/dashboard/appointments",
        cta_label="View Appointments",
    )


def appointment_rescheduled_template(
    client_name: str,
    service_title: str,
    old_date: str,
    old_time: str,
    new_date: str,
    new_time: str,
    duration: int,
    fee_message: Optional[str] = None,
) -> str:
    content = f"""
    <mj-text>
      Hi {sanitize_string(client_name)},
    </mj-text>

    <mj-text>
      Your appointment originally scheduled for {old_date} at {old_time} UTC has been moved.
    </mj-text>

    {_appointment_details(service_title, new_date, new_time, duration)}
    """

    if fee_message:
        content += f"""
    <mj-text font-size="14px" color="{THEME['warning']}">
      {sanitize_string(fee_message)}
    </mj-text>
    """

    return get_base_template(
        title="Appointment Rescheduled",
        preview_text=f"New time: {new_date} at {new_time}",
        content_sections=content,
        cta_url=f"{FRONTEND_URL}/dashboard/appointments",
        cta_label="View Appointments",
    )


def appointment_cancelled_template(
    client_name: str,
    service_title: str,
    scheduled_date: str,
    scheduled_time: str,
    policy_message: Optional[str] = None,
    refund_amount: Optional[str] = None,
) -> str:
    """Cancellation notice, with the refund outcome when one was calculated"""
    content = f"""
    <mj-text>
      Hi {sanitize_string(client_name)},
    </mj-text>

    <mj-text>
      Your <strong>{sanitize_string(service_title)}</strong> appointment on {scheduled_date}
      at {scheduled_time} UTC has been cancelled.
    </mj-text>
    """

    if policy_message:
        content += f"""
    <mj-text font-size="14px" color="{THEME['text_muted']}">
      {sanitize_string(policy_message)}
    </mj-text>
    """
    if refund_amount is not None:
        content += f"""
    <mj-text font-size="16px" font-weight="600" color="{THEME['text_primary']}">
      Refund amount: ${refund_amount}
    </mj-text>
    """

    return get_base_template(
        title="Appointment Cancelled",
        preview_text=f"Your appointment on {scheduled_date} was cancelled",
        content_sections=content,
        cta_url=f"{FRONTEND_URL}/book",
        cta_label="Book Another Session",
    )


def appointment_status_template(
    client_name: str,
    service_title: str,
    scheduled_date: str,
    scheduled_time: str,
    duration: int,
    status: str,
) -> str:
    content = f"""
    <mj-text>
      Hi {sanitize_string(client_name)},
    </mj-text>

    <mj-text>
      The status of your appointment is now <strong>{status.replace('_', ' ').title()}</strong>.
    </mj-text>

    {_appointment_details(service_title, scheduled_date, scheduled_time, duration)}
    """

    return get_base_template(
        title="Appointment Update",
        preview_text=f"Your appointment is {status.lower()}",
        content_sections=content,
    )


def appointment_reminder_template(
    client_name: str,
    service_title: str,
    scheduled_date: str,
    scheduled_time: str,
    duration: int,
    custom_message: Optional[str] = None,
) -> str:
    note = f"<mj-text>{text_to_html(custom_message)}</mj-text>" if custom_message else ""
    content = f"""
    <mj-text>
      Hi {sanitize_string(client_name)},
    </mj-text>

    <mj-text>
      This is a friendly reminder of your upcoming session with us.
    </mj-text>

    {_appointment_details(service_title, scheduled_date, scheduled_time, duration)}

    {note}

    <mj-text color="{THEME['text_muted']}" font-size="14px">
      Need to make a change? Sessions can be rescheduled free of charge up to 48 hours in advance.
    </mj-text>
    """

    return get_base_template(
        title="Appointment Reminder",
        preview_text=f"Reminder: {service_title} on {scheduled_date}",
        content_sections=content,
        cta_url=f"{FRONTEND_URL}/dashboard/appointments",
        cta_label="View Appointments",
    )


def contact_notification_template(
    name: str,
    email: str,
    phone: Optional[str],
    subject: str,
    message: str,
) -> str:
    """New contact-form submission, sent to the practice"""
    content = f"""
    <mj-text>
      A new message was submitted through the contact form.
    </mj-text>

    <mj-text font-size="14px" color="{THEME['text_muted']}" padding="0">
      <strong>Name:</strong> {sanitize_string(name)}<br/>
      <strong>Email:</strong> {sanitize_string(email)}<br/>
      <strong>Phone:</strong> {sanitize_string(phone) or 'Not provided'}<br/>
      <strong>Subject:</strong> {sanitize_string(subject)}
    </mj-text>

    <mj-text padding="20px 0 0 0">
      {text_to_html(message)}
    </mj-text>
    """

    return get_base_template(
        title="New Contact Form Message",
        preview_text=f"From {name}: {subject}",
        content_sections=content,
        cta_url=f"{FRONTEND_URL}/admin/messages",
        cta_label="Open Messages",
        is_client_email=False,
    )


def contact_auto_response_template(name: str, subject: str) -> str:
    content = f"""
    <mj-text>
      Hi {sanitize_string(name)},
    </mj-text>

    <mj-text>
      Thank you for reaching out about "{sanitize_string(subject)}". We'll get back to you
      within 24 hours.
    </mj-text>

    <mj-text font-size="14px" color="{THEME['danger']}">
      If you are experiencing a crisis, please call 988 or go to your nearest emergency room.
    </mj-text>
    """

    return get_base_template(
        title="We Received Your Message",
        preview_text="We'll get back to you within 24 hours",
        content_sections=content,
    )


def contact_reply_template(name: str, subject: str, response: str) -> str:
    content = f"""
    <mj-text>
      Hi {sanitize_string(name)},
    </mj-text>

    <mj-text>
      {text_to_html(response)}
    </mj-text>

    <mj-text font-size="14px" color="{THEME['text_muted']}">
      In reply to: {sanitize_string(subject)}
    </mj-text>
    """

    return get_base_template(
        title=f"Re: {sanitize_string(subject)}",
        preview_text="A reply to your message",
        content_sections=content,
    )
