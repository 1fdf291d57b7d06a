# ===== agenda/services/email/email_service.py =====
import smtplib
from dataclasses import dataclass
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from html import escape
from typing import List, Optional
import logging

from agenda.config.settings import settings

logger = logging.getLogger(__name__)


@dataclass
class AppointmentEmailContext:
    """Everything the appointment templates render"""
    customer_name: str
    establishment_name: str
    establishment_slug: str
    service_name: str
    professional_name: str
    when: str  # already formatted in the establishment's timezone
    cancellation_policy: Optional[str] = None
    manage_token: Optional[str] = None


# subject, headline, lead paragraph
APPOINTMENT_TEMPLATES = {
    "confirmation": (
        "Your appointment at {establishment_name} is booked",
        "Appointment booked",
        "Your appointment has been booked. We look forward to seeing you!",
    ),
    "reminder": (
        "Reminder: your appointment at {establishment_name}",
        "See you soon",
        "This is a friendly reminder about your upcoming appointment.",
    ),
    "cancellation": (
        "Your appointment at {establishment_name} was canceled",
        "Appointment canceled",
        "Your appointment has been canceled. You are welcome to book a new time whenever you like.",
    ),
    "reschedule": (
        "Your appointment at {establishment_name} was rescheduled",
        "Appointment rescheduled",
        "Your appointment has been moved to a new time.",
    ),
}


class EmailService:
    """Service for sending emails via SMTP"""

    @staticmethod
    def _get_smtp_connection():
        """Create and return SMTP connection"""
        try:
            if settings.EMAIL_USE_TLS:
                server = smtplib.SMTP(settings.EMAIL_HOST, settings.EMAIL_PORT)
                server.starttls()
            else:
                server = smtplib.SMTP_SSL(settings.EMAIL_HOST, settings.EMAIL_PORT)

            if settings.EMAIL_USERNAME and settings.EMAIL_PASSWORD:
                server.login(settings.EMAIL_USERNAME, settings.EMAIL_PASSWORD)

            return server
        except Exception as e:
            logger.error(f"Failed to connect to SMTP server: {e}")
            raise

    @staticmethod
    def send_email(
            to_email: str,
            subject: str,
            html_content: str,
            plain_text: Optional[str] = None,
            cc: Optional[List[str]] = None,
            bcc: Optional[List[str]] = None
    ) -> bool:
        """
        Send an email using SMTP

        Args:
            to_email: Recipient email address
            subject: Email subject
            html_content: HTML content of the email
            plain_text: Plain text version (fallback for non-HTML clients)
            cc: List of CC email addresses
            bcc: List of BCC email addresses

        Returns:
            bool: True if email sent successfully
        """
        try:
            msg = MIMEMultipart('alternative')
            msg['Subject'] = subject
            msg['From'] = f"{settings.EMAIL_FROM_NAME} <{settings.EMAIL_FROM_ADDRESS}>"
            msg['To'] = to_email

            if cc:
                msg['Cc'] = ', '.join(cc)

            if plain_text:
                msg.attach(MIMEText(plain_text, 'plain'))

            msg.attach(MIMEText(html_content, 'html'))

            recipients = [to_email]
            if cc:
                recipients.extend(cc)
            if bcc:
                recipients.extend(bcc)

            server = EmailService._get_smtp_connection()
            server.sendmail(settings.EMAIL_FROM_ADDRESS, recipients, msg.as_string())
            server.quit()

            logger.info(f"Email sent successfully to {to_email}")
            return True

        except Exception as e:
            logger.error(f"Failed to send email to {to_email}: {e}")
            raise

    @staticmethod
    def manage_url(establishment_slug: str, token: str) -> str:
        return f"{settings.FRONTEND_URL}/{establishment_slug}/manage/{token}"

    @staticmethod
    def render_appointment_email(notification_type: str, context: AppointmentEmailContext):
        """Return (subject, html, plain text) for an appointment notification"""
        subject_tpl, headline, lead = APPOINTMENT_TEMPLATES[notification_type]
        subject = subject_tpl.format(establishment_name=context.establishment_name)

        manage_html = ""
        manage_text = ""
        if context.manage_token and notification_type != "cancellation":
            url = EmailService.manage_url(context.establishment_slug, context.manage_token)
            manage_html = f"""
                <div style="text-align: center; margin: 30px 0;">
                    <a href="{escape(url)}"
                       style="background-color: #667eea; color: white; padding: 14px 32px; text-decoration: none; border-radius: 5px; display: inline-block; font-weight: bold;">
                        Reschedule or cancel
                    </a>
                </div>"""
            manage_text = f"\nReschedule or cancel: {url}\n"

        policy_html = ""
        if context.cancellation_policy:
            policy_html = f"""
                <p style="font-size: 13px; color: #777; border-top: 1px solid #e0e0e0; padding-top: 15px;">
                    {escape(context.cancellation_policy)}
                </p>"""

        html_content = f"""
        <!DOCTYPE html>
        <html>
        <head>
            <meta charset="UTF-8">
            <meta name="viewport" content="width=device-width, initial-scale=1.0">
        </head>
        <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px;">
            <div style="background: linear-gradient(135deg, #667eea 0%, #764ba2 100%); padding: 30px; text-align: center; border-radius: 10px 10px 0 0;">
                <h1 style="color: white; margin: 0; font-size: 28px;">{headline}</h1>
            </div>

            <div style="background-color: #ffffff; padding: 30px; border: 1px solid #e0e0e0; border-top: none; border-radius: 0 0 10px 10px;">
                <h2 style="color: #333; margin-top: 0;">Hi {escape(context.customer_name)}!</h2>

                <p style="font-size: 16px; color: #555;">{lead}</p>

                <table style="width: 100%; font-size: 15px; color: #555; margin: 20px 0;">
                    <tr><td style="padding: 4px 0;"><strong>Where</strong></td><td>{escape(context.establishment_name)}</td></tr>
                    <tr><td style="padding: 4px 0;"><strong>Service</strong></td><td>{escape(context.service_name)}</td></tr>
                    <tr><td style="padding: 4px 0;"><strong>With</strong></td><td>{escape(context.professional_name)}</td></tr>
                    <tr><td style="padding: 4px 0;"><strong>When</strong></td><td>{escape(context.when)}</td></tr>
                </table>
                {manage_html}
                {policy_html}
            </div>
        </body>
        </html>
        """

        plain_text = f"""
Hi {context.customer_name}!

{lead}

Where: {context.establishment_name}
Service: {context.service_name}
With: {context.professional_name}
When: {context.when}
{manage_text}
        """

        return subject, html_content, plain_text

    @staticmethod
    def send_appointment_email(
            to_email: str,
            notification_type: str,
            context: AppointmentEmailContext
    ) -> bool:
        """Send one of the confirmation/reminder/cancellation/reschedule e-mails"""
        subject, html_content, plain_text = EmailService.render_appointment_email(notification_type, context)
        return EmailService.send_email(
            to_email=to_email,
            subject=subject,
            html_content=html_content,
            plain_text=plain_text
        )
