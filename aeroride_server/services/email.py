# Copyright (C) 2024 AeroRide Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Email sending service. Logs to console when SMTP not configured."""

import asyncio
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from aeroride_server.config import settings

logger = logging.getLogger(__name__)


class EmailDeliveryError(Exception):
    """SMTP refused or could not be reached."""


def login_code_html(code: str, expire_minutes: int) -> str:
    """HTML body for the login code email."""
    return f"""<!DOCTYPE html>
<html>
<head><meta charset="utf-8"></head>
<body style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
<h2 style="color: #2563eb;">Your Login Code</h2>
<p>Enter this code to complete your login to AeroRide Nexus:</p>
<div style="background: #f3f4f6; padding: 20px; border-radius: 8px; margin: 20px 0;">
<h1 style="margin: 0; font-size: 32px; letter-spacing: 4px; text-align: center; color: #1f2937;">{code}</h1>
</div>
<p style="color: #6b7280; font-size: 14px;">This code will expire in {expire_minutes} minutes.</p>
<p style="color: #6b7280; font-size: 14px;">If you didn't request this code, please ignore this email.</p>
</body>
</html>"""


def _build_message(to: str, subject: str, body: str, html_body: str | None) -> MIMEText | MIMEMultipart:
    if html_body:
        msg: MIMEText | MIMEMultipart = MIMEMultipart("alternative")
        msg.attach(MIMEText(body, "plain"))
        msg.attach(MIMEText(html_body, "html"))
    else:
        msg = MIMEText(body, "plain")
    msg["Subject"] = subject
    msg["From"] = settings.smtp_from
    msg["To"] = to
    return msg


def _deliver(to: str, msg: MIMEText | MIMEMultipart) -> None:
    with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=10) as server:
        server.starttls()
        server.login(settings.smtp_user, settings.smtp_password or "")
        server.sendmail(settings.smtp_from, [to], msg.as_string())


async def send_email(to: str, subject: str, body: str, html_body: str | None = None) -> None:
    """Send an email (plain, optionally with HTML alternative).

    Logs to console if SMTP is not configured. Raises EmailDeliveryError on SMTP failure.
    """
    if not (settings.smtp_host and settings.smtp_user):
        logger.info("Email (SMTP not configured): To=%s Subject=%s Body=%s", to, subject, body[:200])
        return
    msg = _build_message(to, subject, body, html_body)
    try:
        await asyncio.to_thread(_deliver, to, msg)
    except (smtplib.SMTPException, OSError) as e:
        logger.exception("Failed to send email to %s: %s", to, e)
        raise EmailDeliveryError(str(e)) from e
