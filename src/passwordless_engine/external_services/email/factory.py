import logging

from passwordless_engine.external_services.email.base import EmailProvider, EmailProviderConfig
from passwordless_engine.external_services.email.providers.console import ConsoleEmailProvider
from passwordless_engine.external_services.email.providers.sendgrid import SendGridEmailProvider

logger = logging.getLogger(__name__)


class EmailServiceFactory:
    @staticmethod
    def create(config: EmailProviderConfig) -> EmailProvider:
        provider_type = str(config.provider_type).lower()

        if provider_type == "sendgrid":
            return SendGridEmailProvider(config)

        if provider_type != "console":
            logger.warning(
                f"Unknown email provider type: {config.provider_type}. Falling back to Console."
            )
        return ConsoleEmailProvider()
