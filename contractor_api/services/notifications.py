"""
Email notifications for accepted contact submissions.

When enabled, two messages go out after the response has been sent: a
notification to the admin address and an auto-reply to the customer.
Delivery problems are logged and never affect the submission itself.
"""

import html
import logging
import smtplib
from email.message import EmailMessage
from typing import Optional

from contractor_api.models.contact import StoredContact

logger = logging.getLogger(__name__)

COMPANY_NAME = "Apna Contractors"


def build_admin_notification(record: StoredContact, sender: str, admin_email: str) -> EmailMessage:
    submitted = record.submittedAt.strftime("%Y-%m-%d %H:%M:%S %Z")
    phone = record.phone or "Not provided"

    msg = EmailMessage()
    msg["Subject"] = f"New Contact Form Submission - {record.service}"
    msg["From"] = sender
    msg["To"] = admin_email
    msg["Reply-To"] = record.email
    msg.set_content(
        "New Contact Form Submission\n\n"
        f"Name: {record.name}\n"
        f"Email: {record.email}\n"
        f"Phone: {phone}\n"
        f"Service: {record.service}\n\n"
        f"Message:\n{record.message}\n\n"
        f"Submitted at: {submitted}\n"
    )
    msg.add_alternative(
        "<h2>New Contact Form Submission</h2>"
        f"<p><strong>Name:</strong> {html.escape(record.name)}</p>"
        f"<p><strong>Email:</strong> {html.escape(record.email)}</p>"
        f"<p><strong>Phone:</strong> {html.escape(phone)}</p>"
        f"<p><strong>Service:</strong> {html.escape(record.service)}</p>"
        "<p><strong>Message:</strong></p>"
        f"<p>{html.escape(record.message)}</p>"
        "<hr>"
        f"<p><small>Submitted at: {submitted}</small></p>",
        subtype="html",
    )
    return msg


def build_customer_reply(record: StoredContact, sender: str) -> EmailMessage:
    msg = EmailMessage()
    msg["Subject"] = f"Thank you for contacting {COMPANY_NAME}"
    msg["From"] = sender
    msg["To"] = record.email
    msg.set_content(
        f"Dear {record.name},\n\n"
        f"We have received your message regarding {record.service} and will get back to you within 24 hours.\n"
        "Our team will review your requirements and contact you soon.\n\n"
        f"Best regards,\n{COMPANY_NAME} Team\n\n"
        "This is an automated response. Please do not reply to this email.\n"
    )
    msg.add_alternative(
        "<h2>Thank you for your inquiry!</h2>"
        f"<p>Dear {html.escape(record.name)},</p>"
        f"<p>We have received your message regarding <strong>{html.escape(record.service)}</strong> "
        "and will get back to you within 24 hours.</p>"
        "<p>Our team will review your requirements and contact you soon.</p>"
        f"<br><p>Best regards,<br>{COMPANY_NAME} Team</p>"
        "<hr><p><small>This is an automated response. Please do not reply to this email.</small></p>",
        subtype="html",
    )
    return msg


class EmailNotifier:
    """Sends submission emails over SMTP with STARTTLS"""

    def __init__(
        self,
        host: str,
        port: int,
        username: Optional[str],
        password: Optional[str],
        admin_email: str,
        enabled: bool = True,
        timeout: float = 10.0,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.admin_email = admin_email
        self.enabled = bool(enabled and username and password)
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings):
        return cls(
            host=settings.smtp_host,
            port=settings.smtp_port,
            username=settings.email_user,
            password=settings.email_pass,
            admin_email=settings.admin_email,
            enabled=settings.email_configured,
            timeout=settings.smtp_timeout,
        )

    def send_submission_emails(self, record: StoredContact, request_id: Optional[str] = None) -> bool:
        """
        Send the admin notification and the customer auto-reply.

        Runs as a background task after the response, so it is synchronous
        and swallows delivery errors after logging them.

        Returns:
            bool: True if both emails were handed to the SMTP server
        """
        tag = f"[{request_id}] " if request_id else ""
        if not self.enabled:
            logger.debug(f"{tag}Email notifications disabled, skipping contact {record.id}")
            return False

        messages = [
            build_admin_notification(record, self.username, self.admin_email),
            build_customer_reply(record, self.username),
        ]
        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
                smtp.starttls()
                smtp.login(self.username, self.password)
                for message in messages:
                    smtp.send_message(message)
            logger.info(f"{tag}📧 Emails sent successfully for contact {record.id}")
            return True
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"{tag}❌ Email sending error for contact {record.id}: {str(e)}")
            return False
