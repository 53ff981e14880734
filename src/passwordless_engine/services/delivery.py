# services/delivery.py
"""
Adapters from the email / SMS providers to the passwordless send-function
contract:

  async send(identifier, user_input_code, url_with_link_code,
             code_lifetime_ms, pre_auth_session_id, user_context) -> None

A provider reporting failure (returns False) becomes a DeliveryError so that
the create / resend request fails instead of silently claiming success.
"""

import logging
from typing import Any

from passwordless_engine.core.exceptions import DeliveryError
from passwordless_engine.external_services.email.base import EmailProvider
from passwordless_engine.external_services.sms.base import SMSProvider
from passwordless_engine.recipe.config import SendFunction

logger = logging.getLogger(__name__)


def humanise_milliseconds(milliseconds: int) -> str:
    seconds = milliseconds // 1000
    if seconds < 60:
        return f"{seconds} second{'s' if seconds != 1 else ''}"
    minutes = seconds // 60
    if minutes < 60:
        return f"{minutes} minute{'s' if minutes != 1 else ''}"
    hours = minutes / 60
    if hours.is_integer():
        hours_text = str(int(hours))
    else:
        hours_text = f"{hours:.1f}"
    return f"{hours_text} hour{'s' if hours != 1 else ''}"


def render_login_email(
    app_name: str,
    user_input_code: str | None,
    url_with_link_code: str | None,
    code_lifetime: int,
) -> str:
    lifetime = humanise_milliseconds(code_lifetime)
    parts = [
        '<html><body style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">',
        f'<h2 style="color: #333;">Sign in to {app_name}</h2>',
    ]
    if user_input_code is not None:
        parts.append(
            f"<p>Enter this code to sign in:</p>"
            f'<p style="font-size: 28px; letter-spacing: 4px;"><strong>{user_input_code}</strong></p>'
        )
    if url_with_link_code is not None:
        parts.append(
            f'<p><a href="{url_with_link_code}" '
            f'style="background:#4F46E5;color:#fff;padding:14px 28px;'
            f'border-radius:6px;text-decoration:none;font-weight:bold;">Sign In</a></p>'
            f'<p style="color:#aaa;font-size:11px;word-break:break-all;">'
            f"Or copy this URL into your browser:<br/>{url_with_link_code}</p>"
        )
    parts.append(
        f'<p style="color:#888;font-size:13px;">This expires in <strong>{lifetime}</strong>. '
        f"If you didn't request this, you can safely ignore this email.</p>"
    )
    parts.append("</body></html>")
    return "".join(parts)


def render_login_sms(
    app_name: str,
    user_input_code: str | None,
    url_with_link_code: str | None,
    code_lifetime: int,
) -> str:
    lifetime = humanise_milliseconds(code_lifetime)
    if user_input_code is not None and url_with_link_code is not None:
        return (
            f"OTP to login is {user_input_code} for {app_name}. "
            f"Or click {url_with_link_code} to login. This is valid for {lifetime}."
        )
    if user_input_code is not None:
        return f"OTP to login is {user_input_code} for {app_name}. This is valid for {lifetime}."
    return f"Click {url_with_link_code} to login to {app_name}. This is valid for {lifetime}."


def make_email_sender(provider: EmailProvider, app_name: str) -> SendFunction:
    async def send(
        email: str,
        user_input_code: str | None,
        url_with_link_code: str | None,
        code_lifetime: int,
        pre_auth_session_id: str,
        user_context: dict[str, Any],
    ) -> None:
        html_content = render_login_email(
            app_name, user_input_code, url_with_link_code, code_lifetime
        )
        sent = await provider.send_email([email], f"Login to {app_name}", html_content)
        if not sent:
            raise DeliveryError(f"Failed to send the passwordless login email to {email}")
        logger.debug(f"[Delivery] Passwordless login email sent to {email}")

    return send


def make_sms_sender(provider: SMSProvider, app_name: str) -> SendFunction:
    async def send(
        phone_number: str,
        user_input_code: str | None,
        url_with_link_code: str | None,
        code_lifetime: int,
        pre_auth_session_id: str,
        user_context: dict[str, Any],
    ) -> None:
        message = render_login_sms(app_name, user_input_code, url_with_link_code, code_lifetime)
        sent = await provider.send_sms(phone_number, message)
        if not sent:
            raise DeliveryError(f"Failed to send the passwordless login SMS to {phone_number}")
        logger.debug(f"[Delivery] Passwordless login SMS sent to {phone_number}")

    return send
