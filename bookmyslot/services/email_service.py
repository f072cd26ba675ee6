import logging
import smtplib
from datetime import datetime
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from bookmyslot.core.config import settings

logger = logging.getLogger(__name__)


def _send_email_sync(to_email: str, subject: str, html_body: str) -> None:
    """Send email via SMTP (blocking). Use from background task."""
    if not settings.email_enabled:
        logger.debug("Email disabled (SMTP not configured), skipping %r to %s", subject, to_email)
        return
    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = f"{settings.from_name} <{settings.from_email}>"
    msg["To"] = to_email
    msg.attach(MIMEText(html_body, "html", "utf-8"))
    try:
        with smtplib.SMTP(settings.smtp_host, settings.smtp_port) as server:
            server.starttls()
            server.login(settings.smtp_user, settings.smtp_password)
            server.sendmail(settings.from_email, [to_email], msg.as_string())
        logger.info("Email sent to %s", to_email)
    except Exception as e:
        logger.exception("Failed to send email to %s: %s", to_email, e)


def _html_escape(s: str) -> str:
    return (
        s.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
    )


def _format_slot(start_time: datetime) -> str:
    return start_time.strftime("%A, %B %d, %Y at %I:%M %p (UTC)")


def _wrap(title: str, body_html: str) -> str:
    footer = _html_escape(settings.site_name)
    if settings.contact_email:
        footer += f" &nbsp;·&nbsp; {_html_escape(settings.contact_email)}"
    return f"""
<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><title>{title}</title></head>
<body style="margin:0;padding:0;font-family:-apple-system,BlinkMacSystemFont,'Segoe UI',Roboto,sans-serif;background-color:#f3f4f6;">
  <table role="presentation" width="100%" cellspacing="0" cellpadding="0" style="background-color:#f3f4f6;">
    <tr>
      <td align="center" style="padding:40px 16px;">
        <table role="presentation" width="100%" cellspacing="0" cellpadding="0" style="max-width:560px;background:#ffffff;border-radius:12px;">
          <tr>
            <td style="padding:32px;">
              <h1 style="margin:0 0 16px 0;font-size:22px;font-weight:600;color:#111827;">{title}</h1>
              {body_html}
            </td>
          </tr>
          <tr>
            <td style="padding:24px 32px;background:#f9fafb;border-top:1px solid #e5e7eb;font-size:13px;color:#6b7280;">{footer}</td>
          </tr>
        </table>
      </td>
    </tr>
  </table>
</body>
</html>
"""


def send_booking_confirmation_email(
    to_email: str, customer_name: str, clinic_name: str, start_time: datetime
) -> None:
    body = (
        f'<p style="color:#374151;">Hi {_html_escape(customer_name or "there")}, your appointment at '
        f"<strong>{_html_escape(clinic_name)}</strong> is confirmed for {_format_slot(start_time)}.</p>"
    )
    _send_email_sync(to_email, f"{settings.site_name} – Booking Confirmed", _wrap("Booking Confirmed", body))


def send_booking_cancellation_email(
    to_email: str, customer_name: str, clinic_name: str, start_time: datetime
) -> None:
    body = (
        f'<p style="color:#374151;">Hi {_html_escape(customer_name or "there")}, your appointment at '
        f"<strong>{_html_escape(clinic_name)}</strong> on {_format_slot(start_time)} has been cancelled "
        "by the clinic. Please book another time.</p>"
    )
    _send_email_sync(to_email, f"{settings.site_name} – Booking Cancelled", _wrap("Booking Cancelled", body))


def send_verification_code_email(to_email: str, customer_name: str, code: str, ttl_minutes: int) -> None:
    body = (
        f'<p style="color:#374151;">Hi {_html_escape(customer_name or "there")}, use this code to confirm your booking:</p>'
        f'<p style="font-size:28px;font-weight:700;letter-spacing:6px;color:#111827;">{code}</p>'
        f'<p style="color:#6b7280;font-size:14px;">The code expires in {ttl_minutes} minutes.</p>'
    )
    _send_email_sync(to_email, f"{settings.site_name} – Your verification code", _wrap("Verify your booking", body))


def send_doctor_invite_email(to_email: str, doctor_name: str, clinic_name: str, invite_url: str) -> None:
    body = (
        f'<p style="color:#374151;">Hi {_html_escape(doctor_name or "there")}, you have been added as a doctor at '
        f"<strong>{_html_escape(clinic_name)}</strong>.</p>"
        f'<p><a href="{_html_escape(invite_url)}">Set your password</a></p>'
    )
    _send_email_sync(to_email, f"{settings.site_name} – Doctor account invitation", _wrap("You're invited", body))
