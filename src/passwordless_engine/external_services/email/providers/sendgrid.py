import asyncio
import logging

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail

from passwordless_engine.external_services.email.base import EmailProvider, EmailProviderConfig

logger = logging.getLogger(__name__)


class SendGridEmailProvider(EmailProvider):
    def __init__(self, config: EmailProviderConfig) -> None:
        self.api_key = config.api_key
        self.default_sender = config.from_email
        if not self.api_key:
            logger.warning("SendGrid API key is not set.")

    async def send_email(self, to_emails: list[str], subject: str, html_content: str) -> bool:
        if not self.api_key:
            logger.error("Cannot send email: SendGrid API key is missing.")
            return False

        message = Mail(
            from_email=self.default_sender,
            to_emails=to_emails,
            subject=subject,
            html_content=html_content,
        )

        try:
            sg = SendGridAPIClient(self.api_key)
            # The SendGrid client is synchronous
            response = await asyncio.to_thread(sg.send, message)
        except Exception as e:
            logger.error(f"Error sending email via SendGrid: {str(e)}")
            return False

        if 200 <= response.status_code < 300:
            logger.info(f"Email sent successfully to {to_emails}")
            return True

        logger.error(
            f"Failed to send email. Status Code: {response.status_code} Body: {response.body}"
        )
        return False
