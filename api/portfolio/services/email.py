"""Email service using Resend for sending transactional emails.

Every sender is best effort: when RESEND_API_KEY is unset the message is only
logged, and delivery failures are logged and swallowed.
"""

from __future__ import annotations

import html
import logging
import os
from datetime import datetime, timezone
from typing import Any

import resend

from .. import settings

logger = logging.getLogger(__name__)

# Resend configuration from environment
RESEND_API_KEY = os.getenv("RESEND_API_KEY")
RESEND_FROM_EMAIL = os.getenv("RESEND_FROM_EMAIL", "Portfolio <noreply@example.com>")


def _init_resend() -> bool:
    """Initialize Resend API key. Returns True if configured."""
    if not RESEND_API_KEY:
        return False
    resend.api_key = RESEND_API_KEY
    return True


def _wrap_html(title: str, body: str) -> str:
    return f"""
<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{title}</title>
</head>
<body style="font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; line-height: 1.6; color: #eee; background: #050505; max-width: 600px; margin: 0 auto; padding: 20px;">
    <div style="border: 1px solid #00f3ff; border-radius: 10px; padding: 30px;">
        {body}
    </div>
</body>
</html>
"""


def _button(url: str, label: str) -> str:
    return f"""
        <div style="text-align: center; margin: 30px 0;">
            <a href="{url}"
               style="background: #00f3ff; color: #050505; text-decoration: none;
                      padding: 15px 30px; border-radius: 5px; font-weight: bold; display: inline-block;">
                {label}
            </a>
        </div>
        <p style="color: #999; font-size: 12px; word-break: break-all;">{url}</p>
"""


def _send(kind: str, to_email: str, subject: str, html_content: str, text_content: str) -> dict[str, Any] | None:
    if not _init_resend():
        logger.info(f"Email sending disabled - would send {kind} email to {to_email}")
        return None

    try:
        params: resend.Emails.SendParams = {
            "from": RESEND_FROM_EMAIL,
            "to": [to_email],
            "subject": subject,
            "html": html_content,
            "text": text_content,
        }
        response = resend.Emails.send(params)
        logger.info(f"{kind.capitalize()} email sent to {to_email}, id: {response.get('id', 'unknown')}")
        return response
    except Exception as e:
        logger.error(f"Failed to send {kind} email to {to_email}: {e}")
        return None


def send_verification_email(to_email: str, token: str, name: str | None = None) -> dict[str, Any] | None:
    """
    Send the email verification link to a newly registered user.

    Args:
        to_email: The recipient's email address
        token: The verification token (plain, not hashed)
        name: Display name for the greeting

    Returns:
        Resend API response if successful, None if email sending is disabled or fails
    """
    url = f"{settings.APP_BASE_URL}/api/verify-email?token={token}"
    greeting = f"Hi {html.escape(name)}!" if name else "Hi there!"
    body = f"""
        <p style="margin-top: 0; font-size: 18px;">{greeting}</p>
        <p>Please confirm your email address to finish creating your account.</p>
        {_button(url, "Verify Email Address")}
        <p style="color: #999; font-size: 12px;">This link expires in {settings.TOKEN_TTL_MINUTES} minutes.</p>
"""
    text = (
        f"{greeting}\n\nPlease confirm your email address:\n{url}\n\n"
        f"This link expires in {settings.TOKEN_TTL_MINUTES} minutes.\n"
    )
    return _send("verification", to_email, "Verify your email", _wrap_html("Verify your email", body), text)


def send_password_reset_email(to_email: str, token: str, name: str | None = None) -> dict[str, Any] | None:
    """Send the password reset link. Returns the Resend response or None."""
    url = f"{settings.APP_BASE_URL}/login?reset={token}"
    greeting = f"Hi {html.escape(name)}!" if name else "Hi there!"
    body = f"""
        <p style="margin-top: 0; font-size: 18px;">{greeting}</p>
        <p>Someone asked to reset the password for this account. If it was you, use the link below.</p>
        {_button(url, "Reset Password")}
        <p style="color: #999; font-size: 12px;">
            This link expires in {settings.TOKEN_TTL_MINUTES} minutes. If you didn't ask for it, ignore this email.
        </p>
"""
    text = (
        f"{greeting}\n\nReset your password:\n{url}\n\n"
        f"This link expires in {settings.TOKEN_TTL_MINUTES} minutes.\n"
    )
    return _send("password reset", to_email, "Reset your password", _wrap_html("Reset your password", body), text)


def send_login_alert_email(
    to_email: str,
    name: str | None,
    ip: str,
    user_agent: str | None,
) -> dict[str, Any] | None:
    """Notify a user about a successful sign-in."""
    when = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M UTC")
    greeting = f"Hi {html.escape(name)}!" if name else "Hi there!"
    agent = html.escape(user_agent or "unknown device")
    body = f"""
        <p style="margin-top: 0; font-size: 18px;">{greeting}</p>
        <p>Your account was just signed in.</p>
        <p style="margin: 5px 0;"><strong>When:</strong> {when}</p>
        <p style="margin: 5px 0;"><strong>IP:</strong> {html.escape(ip)}</p>
        <p style="margin: 5px 0;"><strong>Device:</strong> {agent}</p>
        <p style="color: #999; font-size: 12px;">If this wasn't you, reset your password right away.</p>
"""
    text = f"{greeting}\n\nNew sign-in at {when} from {ip} ({user_agent or 'unknown device'}).\n"
    return _send("login alert", to_email, "New sign-in to your account", _wrap_html("New sign-in", body), text)
