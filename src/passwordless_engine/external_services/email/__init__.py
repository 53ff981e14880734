from passwordless_engine.external_services.email.base import EmailProvider, EmailProviderConfig
from passwordless_engine.external_services.email.factory import EmailServiceFactory

__all__ = [
    "EmailProvider",
    "EmailProviderConfig",
    "EmailServiceFactory",
]
