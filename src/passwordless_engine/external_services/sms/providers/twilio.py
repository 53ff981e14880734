import asyncio
import logging

from twilio.rest import Client

from passwordless_engine.external_services.sms.base import SMSProvider, SMSProviderConfig

logger = logging.getLogger(__name__)


class TwilioSMSProvider(SMSProvider):
    def __init__(self, config: SMSProviderConfig) -> None:
        self.account_sid = config.account_sid
        self.auth_token = config.api_key
        self.from_number = config.from_number

        if not self.account_sid or not self.auth_token:
            logger.warning("Twilio Account SID or Auth Token is not set.")

    async def send_sms(self, to_number: str, message: str) -> bool:
        if not self.account_sid or not self.auth_token:
            logger.error("Cannot send SMS: Twilio credentials missing.")
            return False

        # Messaging service SIDs start with MG, everything else is a sender number
        send_args = {"body": message, "to": to_number}
        if str(self.from_number).startswith("MG"):
            send_args["messaging_service_sid"] = self.from_number
        else:
            send_args["from_"] = self.from_number

        try:
            client = Client(self.account_sid, self.auth_token)
            await asyncio.to_thread(lambda: client.messages.create(**send_args))
        except Exception as e:
            logger.error(f"Error sending SMS via Twilio: {str(e)}")
            return False

        logger.info(f"SMS sent successfully to {to_number}")
        return True
