import logging

from passwordless_engine.core.config import Settings
from passwordless_engine.core.exceptions import ConfigurationError
from passwordless_engine.core.querier import CoreQuerier
from passwordless_engine.external_services.email import (
    EmailProvider,
    EmailProviderConfig,
    EmailServiceFactory,
)
from passwordless_engine.external_services.sms import (
    SMSProvider,
    SMSProviderConfig,
    SMSServiceFactory,
)
from passwordless_engine.recipe.config import (
    AppInfo,
    ContactMethod,
    ContactMethodEmail,
    ContactMethodEmailOrPhone,
    ContactMethodPhone,
    PasswordlessConfig,
    SendFunction,
)
from passwordless_engine.recipe.recipe import PasswordlessRecipe
from passwordless_engine.services.delivery import make_email_sender, make_sms_sender
from passwordless_engine.services.session_service import RedisSessionCreator, SessionCreator

logger = logging.getLogger(__name__)


def build_app_info(settings: Settings) -> AppInfo:
    return AppInfo(
        app_name=settings.APP_NAME,
        website_domain=settings.WEBSITE_DOMAIN,
        website_base_path=settings.WEBSITE_BASE_PATH,
        api_base_path=settings.API_BASE_PATH,
    )


def build_querier(settings: Settings) -> CoreQuerier:
    return CoreQuerier(
        settings.CORE_CONNECTION_URI,
        api_key=settings.CORE_API_KEY,
        timeout=settings.CORE_TIMEOUT_SECONDS,
    )


def build_email_provider(settings: Settings) -> EmailProvider:
    return EmailServiceFactory.create(
        EmailProviderConfig(
            provider_type=settings.EMAIL_PROVIDER,
            api_key=settings.EMAIL_PROVIDER_API_KEY,
            from_email=settings.EMAIL_SENDER,
        )
    )


def build_sms_provider(settings: Settings) -> SMSProvider:
    return SMSServiceFactory.create(
        SMSProviderConfig(
            provider_type=settings.SMS_PROVIDER,
            api_key=settings.SMS_PROVIDER_API_KEY,
            from_number=settings.SMS_SENDER,
            account_sid=settings.SMS_PROVIDER_ACCOUNT_SID,
        )
    )


def build_passwordless_config(
    settings: Settings,
    email_provider: EmailProvider | None = None,
    sms_provider: SMSProvider | None = None,
) -> PasswordlessConfig:
    """
    Translate CONTACT_METHOD / FLOW_TYPE and the delivery settings into a
    PasswordlessConfig. Providers not passed in are built from settings,
    and only for the channels the contact method needs.
    """
    try:
        contact_method = ContactMethod(settings.CONTACT_METHOD)
    except ValueError as exc:
        raise ConfigurationError(
            f"CONTACT_METHOD must be one of EMAIL, PHONE or EMAIL_OR_PHONE, "
            f"got '{settings.CONTACT_METHOD}'"
        ) from exc

    def send_email() -> SendFunction:
        provider = email_provider or build_email_provider(settings)
        return make_email_sender(provider, settings.APP_NAME)

    def send_text_message() -> SendFunction:
        provider = sms_provider or build_sms_provider(settings)
        return make_sms_sender(provider, settings.APP_NAME)

    if contact_method is ContactMethod.EMAIL:
        return PasswordlessConfig(
            flow_type=settings.FLOW_TYPE,
            contact_method_email=ContactMethodEmail(create_and_send_custom_email=send_email()),
        )
    if contact_method is ContactMethod.PHONE:
        return PasswordlessConfig(
            flow_type=settings.FLOW_TYPE,
            contact_method_phone=ContactMethodPhone(
                create_and_send_custom_text_message=send_text_message()
            ),
        )
    return PasswordlessConfig(
        flow_type=settings.FLOW_TYPE,
        contact_method_email_or_phone=ContactMethodEmailOrPhone(
            create_and_send_custom_email=send_email(),
            create_and_send_custom_text_message=send_text_message(),
        ),
    )


def build_recipe(
    settings: Settings,
    querier: CoreQuerier | None = None,
    session_creator: SessionCreator | None = None,
) -> PasswordlessRecipe:
    logger.info(
        f"Bootstrapping passwordless recipe against core at {settings.CORE_CONNECTION_URI}"
    )
    return PasswordlessRecipe(
        build_passwordless_config(settings),
        build_app_info(settings),
        querier or build_querier(settings),
        session_creator or RedisSessionCreator(),
    )
