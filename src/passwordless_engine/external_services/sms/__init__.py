from passwordless_engine.external_services.sms.base import SMSProvider, SMSProviderConfig
from passwordless_engine.external_services.sms.factory import SMSServiceFactory

__all__ = [
    "SMSProvider",
    "SMSProviderConfig",
    "SMSServiceFactory",
]
