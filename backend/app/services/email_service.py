"""
Email Service for InternDesk
============================
Transactional emails sent to internship candidates:
- Application received
- Offer letter confirmation (with the domain's task brief)
- Certificate confirmation

Supports both SMTP and SendGrid.
"""

import asyncio
import re
from datetime import datetime
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from enum import Enum
from html import escape
from typing import Any, Dict, Mapping, Optional, Tuple

import aiosmtplib
from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Content, Email, Mail, To

from app.core.config import Settings
from app.core.exceptions import EmailDeliveryError, InvalidEmailError
from app.core.logging_config import logger


EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

DEFAULT_TASK_LINKS: Dict[str, str] = {
    "Web Development": "https://drive.google.com/file/d/15DKjM5IvqPrLVlXaCf6JxAaVjFIgVN7k/view?usp=drive_link",
    "Android App Development": "https://drive.google.com/file/d/12yIhG_iDnKNQ8eBuwx-q1G6R6hU20F-5/view?usp=drive_link",
    "Data Science": "https://drive.google.com/file/d/1t2yWQYlSLniWS4Xcc_m50gaP36PjN5ip/view?usp=drive_link",
    "UI/UX Design": "https://drive.google.com/file/d/1DN8cfbh1Q-mooFmwpa5L74_eX-vf18rp/view?usp=drive_link",
    "Machine Learning": "https://drive.google.com/file/d/1VMtWpsRez0a8PvGqNq696HIwtD6ZNXci/view?usp=drive_link",
    "Python Programming": "https://drive.google.com/file/d/1msG-E2er-vVRg_RKWxOSGmlg52HfNURV/view?usp=drive_link",
    "C++ Programming": "https://drive.google.com/file/d/1ZHXta1_ulHtlkGksz1sY7gCLnO9K0orn/view?usp=drive_link",
}


class NotificationKind(str, Enum):
    APPLICATION_RECEIVED = "application_received"
    OFFER_CONFIRMATION = "offer_confirmation"
    CERTIFICATE_CONFIRMATION = "certificate_confirmation"


def is_valid_email(email: Optional[str]) -> bool:
    return bool(email) and EMAIL_PATTERN.match(email) is not None


def resolve_task_link(domain: Optional[str], links: Mapping[str, str], fallback: str) -> str:
    """Task brief for a domain, matched case-insensitively"""
    normalized = (domain or "").strip().lower()
    for name, url in links.items():
        if name.lower() == normalized:
            return url
    return fallback


class EmailService:
    """Async email service using SMTP or SendGrid"""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.smtp_host = settings.SMTP_HOST
        self.smtp_port = settings.SMTP_PORT
        self.smtp_user = settings.SMTP_USER
        self.smtp_password = settings.SMTP_PASSWORD
        self.from_email = settings.EMAIL_FROM
        self.from_name = settings.EMAIL_FROM_NAME
        self.sendgrid_api_key = settings.SENDGRID_API_KEY
        self.use_sendgrid = settings.USE_SENDGRID and bool(self.sendgrid_api_key)
        self.task_links = {**DEFAULT_TASK_LINKS, **settings.TASK_LINKS}

        if self.use_sendgrid:
            logger.info("[Email] Using SendGrid for email delivery")
        else:
            logger.info("[Email] Using SMTP for email delivery")

    @property
    def is_configured(self) -> bool:
        """Check if email service is properly configured"""
        if self.use_sendgrid:
            return bool(self.sendgrid_api_key)
        return bool(self.smtp_user and self.smtp_password)

    def task_link_for(self, domain: Optional[str]) -> str:
        return resolve_task_link(domain, self.task_links, self.settings.FALLBACK_TASK_LINK)

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def send_email(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None
    ) -> bool:
        """
        Send an email asynchronously.

        Returns True if successful, False otherwise.
        """
        if not self.is_configured:
            logger.warning("[Email] Email service not configured, skipping email send")
            return False

        if self.use_sendgrid:
            return await self._send_via_sendgrid(to_email, subject, html_content, text_content)
        return await self._send_via_smtp(to_email, subject, html_content, text_content)

    async def _send_via_sendgrid(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None
    ) -> bool:
        """Send email via SendGrid API"""
        try:
            message = Mail(
                from_email=Email(self.from_email, self.from_name),
                to_emails=To(to_email),
                subject=subject,
            )
            if text_content:
                message.add_content(Content("text/plain", text_content))
            message.add_content(Content("text/html", html_content))

            sg = SendGridAPIClient(self.sendgrid_api_key)
            # Run synchronous SendGrid call in thread pool
            loop = asyncio.get_running_loop()
            response = await loop.run_in_executor(None, sg.send, message)

            if response.status_code in [200, 201, 202]:
                logger.info(f"[Email/SendGrid] Successfully sent email to {to_email}: {subject}")
                return True
            logger.error(f"[Email/SendGrid] Failed with status {response.status_code}: {response.body}")
            return False

        except Exception as e:
            logger.error(f"[Email/SendGrid] Failed to send email to {to_email}: {e}")
            return False

    async def _send_via_smtp(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None
    ) -> bool:
        """Send email via SMTP"""
        try:
            message = MIMEMultipart("alternative")
            message["From"] = f"{self.from_name} <{self.from_email}>"
            message["To"] = to_email
            message["Subject"] = subject

            # Plain text first so clients prefer the HTML part
            if text_content:
                message.attach(MIMEText(text_content, "plain"))
            message.attach(MIMEText(html_content, "html"))

            await aiosmtplib.send(
                message,
                hostname=self.smtp_host,
                port=self.smtp_port,
                username=self.smtp_user,
                password=self.smtp_password,
                start_tls=True
            )

            logger.info(f"[Email/SMTP] Successfully sent email to {to_email}: {subject}")
            return True

        except (aiosmtplib.SMTPException, OSError) as e:
            logger.error(f"[Email/SMTP] Failed to send email to {to_email}: {e}")
            return False

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    async def send(self, kind: NotificationKind, recipient_email: str, data: Dict[str, Any]) -> None:
        """
        Render and deliver one notification.

        Raises:
            InvalidEmailError: recipient is not an email address (nothing sent)
            EmailDeliveryError: transport unconfigured or refused the message
        """
        if not is_valid_email(recipient_email):
            raise InvalidEmailError(recipient_email)

        renderers = {
            NotificationKind.APPLICATION_RECEIVED: self.render_application_received,
            NotificationKind.OFFER_CONFIRMATION: self.render_offer_confirmation,
            NotificationKind.CERTIFICATE_CONFIRMATION: self.render_certificate_confirmation,
        }
        subject, html_content, text_content = renderers[NotificationKind(kind)](data)

        if not await self.send_email(recipient_email, subject, html_content, text_content):
            raise EmailDeliveryError(recipient_email, f"Failed to send {NotificationKind(kind).value} email")

        logger.log_document_event("email", NotificationKind(kind).value, data.get("id"), recipient=recipient_email)

    # ------------------------------------------------------------------
    # Templates
    # ------------------------------------------------------------------

    def _layout(self, submission_id: str, body: str) -> str:
        org = escape(self.settings.ORGANIZATION_NAME)
        website = escape(self.settings.ORGANIZATION_WEBSITE)
        logo_url = escape(self.settings.public_url(self.settings.OFFER_LOGO_PATH))
        return f"""
        <!DOCTYPE html>
        <html lang="en">
        <head>
            <meta charset="UTF-8" />
            <meta name="viewport" content="width=device-width, initial-scale=1" />
            <style>
                body {{ margin: 0; padding: 0; background: #f3f4f6; font-family: Arial, Helvetica, sans-serif; color: #111827; }}
                .container {{ max-width: 550px; margin: 24px auto 48px; background: #ffffff; border: 1px solid #e9e9e9; border-radius: 4px; }}
                .id-line {{ font-size: 13px; color: #4b5563; text-align: right; padding: 18px 40px 0; }}
                .logo {{ padding: 10px 40px; text-align: center; }}
                .logo img {{ max-width: 100%; height: auto; }}
                .divider {{ border: none; border-top: 1px solid #d1d5db; margin: 8px 0 0; }}
                .content {{ padding: 28px 40px; font-size: 15px; line-height: 1.7; }}
                .footer {{ text-align: center; padding: 24px 40px; font-size: 13px; color: #6b7280; border-top: 1px solid #e5e7eb; }}
            </style>
        </head>
        <body>
            <div class="container">
                <div class="id-line">Id: <strong>{escape(submission_id or "")}</strong></div>
                <div class="logo"><img src="{logo_url}" alt="{org} logo" /></div>
                <hr class="divider" />
                <div class="content">
                    {body}
                </div>
                <div class="footer">
                    <p>Check out our website: <a href="https://{website}">{website}</a></p>
                    <p>&copy; {datetime.utcnow().year} {org}. All rights reserved.</p>
                </div>
            </div>
        </body>
        </html>
        """

    def render_application_received(self, data: Dict[str, Any]) -> Tuple[str, str, str]:
        org = self.settings.ORGANIZATION_NAME
        first_name = data.get("firstName") or ""
        domain = data.get("domain") or ""

        subject = f"Your internship application for a position in {domain} has been received at {org}!"
        body = f"""
                    <p>Hi <strong>{escape(first_name)}</strong>,</p>
                    <p>You have successfully submitted your application for an internship in this domain: <strong>{escape(domain)}</strong></p>
                    <p>Someone will review your qualifications shortly. We will be in touch to schedule the next steps in the process.</p>
                    <p>Thank you for your interest in {escape(org)}.</p>
                    <p><strong>Sincerely,<br/>{escape(org)}</strong></p>
        """
        text_content = (
            f"Hi {first_name},\n\n"
            f"We have received your internship application for a position in this domain: {domain}. "
            f"We will be in touch to schedule the next steps in the process.\n\n"
            f"Thank you for your interest in {org}."
        )
        return subject, self._layout(data.get("id"), body), text_content

    def render_offer_confirmation(self, data: Dict[str, Any]) -> Tuple[str, str, str]:
        org = self.settings.ORGANIZATION_NAME
        name = data.get("candidateName") or ""
        domain = data.get("domain") or ""
        offer_url = data.get("offerLetterUrl") or ""
        start_date = data.get("startDate") or ""
        end_date = data.get("endDate") or ""
        task_link = data.get("taskLink") or self.task_link_for(domain)

        subject = f"Congratulations! Here's your internship offer letter. You have been selected for an internship in {domain}"
        body = f"""
                    <p>Congratulations <strong>{escape(name)}</strong>, you are selected for the {escape(org)} Internship Program.</p>
                    <p>With great pleasure, we would like to offer you the Internship Position in <strong>{escape(domain)}</strong> at {escape(org)}.</p>
                    <p><strong>Offer Letter Link</strong> -&gt; <a href="{escape(offer_url)}">{escape(name)}</a></p>
                    <hr class="divider" />
                    <p><strong>The timeline of the internship will be this way.</strong></p>
                    <p><strong>{escape(start_date)}</strong> - Internship Start Date<br><strong>{escape(end_date)}</strong> - Internship End Date</p>
                    <hr class="divider" />
                    <p><strong>Tasks/Projects!</strong></p>
                    <p><strong>For {escape(domain)}</strong> Tasks/projects, PDF -&gt; <a href="{escape(task_link)}">click here</a></p>
                    <p>*take a reference, create your design<br>*no language barriers</p>
                    <hr class="divider" />
                    <p>Congratulations, once again, on being selected.</p>
                    <p>Best Regards,<br><strong>Team {escape(org)}</strong></p>
        """
        text_content = (
            f"Hi {name},\n\n"
            f"You have been selected for an internship in {domain}.\n"
            f"Offer letter: {offer_url}\n"
            f"Internship period: {start_date} - {end_date}\n"
            f"Tasks: {task_link}\n\n"
            f"Best Regards,\nTeam {org}"
        )
        return subject, self._layout(data.get("id"), body), text_content

    def render_certificate_confirmation(self, data: Dict[str, Any]) -> Tuple[str, str, str]:
        org = self.settings.ORGANIZATION_NAME
        name = data.get("candidateName") or ""
        domain = data.get("domain") or ""
        certificate_url = data.get("certificateUrl") or ""
        start_date = data.get("startDate") or ""
        end_date = data.get("endDate") or ""
        verify_url = self.settings.public_url(f"verify-certificate/{data.get('id') or ''}")

        subject = f"Your internship completion certificate for {domain} is ready"
        body = f"""
                    <p>Congratulations <strong>{escape(name)}</strong>!</p>
                    <p>You have successfully completed your internship in <strong>{escape(domain)}</strong> at {escape(org)}
                       ({escape(start_date)} - {escape(end_date)}).</p>
                    <p><strong>Certificate Link</strong> -&gt; <a href="{escape(certificate_url)}">{escape(name)}</a></p>
                    <p>Anyone can verify your certificate at <a href="{escape(verify_url)}">{escape(verify_url)}</a>.</p>
                    <p>Share your achievement on LinkedIn and tag us!</p>
                    <p>Best Regards,<br><strong>Team {escape(org)}</strong></p>
        """
        text_content = (
            f"Hi {name},\n\n"
            f"Congratulations on completing your internship in {domain} ({start_date} - {end_date}).\n"
            f"Certificate: {certificate_url}\n"
            f"Verify: {verify_url}\n\n"
            f"Best Regards,\nTeam {org}"
        )
        return subject, self._layout(data.get("id"), body), text_content
