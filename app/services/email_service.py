"""Email notification service using SendGrid."""

import logging
from typing import Optional

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail

from app.core.config import settings

logger = logging.getLogger(__name__)


class EmailService:
    """Email service for lead notifications."""

    def __init__(self):
        self.api_key = settings.SENDGRID_API_KEY
        self.from_email = settings.SENDGRID_FROM_EMAIL
        self.from_name = settings.SENDGRID_FROM_NAME
        self.admin_email = settings.ADMIN_NOTIFICATION_EMAIL

        if not self.api_key:
            logger.warning("SENDGRID_API_KEY not configured. Emails will not be sent.")
            self.enabled = False
        else:
            self.client = SendGridAPIClient(self.api_key)
            self.enabled = True
            logger.info("Email service initialized successfully")

    async def send_email(
        self,
        to: str,
        subject: str,
        html_body: str,
        plain_body: Optional[str] = None,
    ) -> bool:
        """
        Send an email.

        Returns:
            True if sent successfully, False otherwise
        """
        if not self.enabled:
            logger.info("Email service disabled. Would have sent to %s: %s", to, subject)
            return False

        try:
            message = Mail(
                from_email=(self.from_email, self.from_name),
                to_emails=to,
                subject=subject,
                html_content=html_body,
            )
            if plain_body:
                message.plain_text_content = plain_body

            response = self.client.send(message)

            if 200 <= response.status_code < 300:
                logger.info("Email sent successfully to %s: %s", to, subject)
                return True
            logger.error("Failed to send email to %s: %s %s", to, response.status_code, response.body)
            return False

        except Exception as e:
            logger.error("Error sending email to %s: %s", to, e)
            return False

    async def send_lead_notification(self, lead) -> bool:
        """Tell the site admin a new lead came in."""
        if not self.admin_email:
            logger.info("ADMIN_NOTIFICATION_EMAIL not set; skipping lead notification")
            return False

        subject = f"New Lead: {lead.name}" + (f" for {lead.perk_title}" if lead.perk_title else "")
        company = f"<p><strong>Company:</strong> {lead.company_name}</p>" if lead.company_name else ""
        phone = f"<p><strong>Phone:</strong> {lead.phone}</p>" if lead.phone else ""
        message = f"<p><strong>Message:</strong> {lead.message}</p>" if lead.message else ""

        html_body = f"""
        <html>
            <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
                <div style="max-width: 600px; margin: 0 auto; padding: 20px;">
                    <h2 style="color: #4A90E2;">New Lead Alert!</h2>

                    <div style="background-color: #f5f5f5; padding: 15px; border-radius: 5px; margin: 20px 0;">
                        <p><strong>Name:</strong> {lead.name}</p>
                        <p><strong>Email:</strong> {lead.email}</p>
                        {phone}
                        {company}
                        <p><strong>Perk:</strong> {lead.perk_title or "General enquiry"}</p>
                        <p><strong>Lead score:</strong> {lead.lead_score}</p>
                        {message}
                    </div>

                    <p style="color: #666; font-size: 14px; margin-top: 40px;">
                        Source: {lead.source}. Budget: {lead.budget_range}. Timeline: {lead.timeline}.
                    </p>
                </div>
            </body>
        </html>
        """

        plain_body = (
            f"New Lead Alert!\n\n"
            f"Name: {lead.name}\nEmail: {lead.email}\n"
            f"Perk: {lead.perk_title or 'General enquiry'}\n"
            f"Lead score: {lead.lead_score}\n"
        )

        return await self.send_email(self.admin_email, subject, html_body, plain_body)

    async def send_lead_confirmation(self, lead) -> bool:
        """Thank the visitor for their enquiry."""
        perk_line = f" about <strong>{lead.perk_title}</strong>" if lead.perk_title else ""
        subject = f"Thanks for your interest, {lead.name}!"

        html_body = f"""
        <html>
            <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
                <div style="max-width: 600px; margin: 0 auto; padding: 20px;">
                    <h2 style="color: #4A90E2;">We received your enquiry</h2>
                    <p>Hi {lead.name},</p>
                    <p>Thanks for getting in touch{perk_line}. Our team will contact you shortly.</p>
                    <p style="color: #666; font-size: 14px; margin-top: 40px;">
                        Best regards,<br>
                        The {self.from_name} Team
                    </p>
                </div>
            </body>
        </html>
        """

        plain_body = (
            f"Hi {lead.name},\n\nThanks for getting in touch"
            f"{' about ' + lead.perk_title if lead.perk_title else ''}. "
            f"Our team will contact you shortly.\n\nThe {self.from_name} Team"
        )

        return await self.send_email(lead.email, subject, html_body, plain_body)


email_service = EmailService()
