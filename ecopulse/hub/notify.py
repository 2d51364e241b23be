"""Alert delivery sinks for forecasts above the consumption thresholds.

Notifiers return True on delivery and raise ``NotificationError`` on failure;
the forecast cycle logs the failure and moves on.
"""

from __future__ import annotations

import asyncio
import logging
import smtplib
from datetime import datetime
from email.message import EmailMessage
from typing import Protocol

import aiohttp

from ecopulse.engine.config import SmtpConfig, TelegramConfig
from ecopulse.shared.errors import NotificationError

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    async def notify(self, building_id: str, predicted_energy: float, predicted_water: float) -> bool: ...


def format_alert(building_id: str, predicted_energy: float, predicted_water: float) -> str:
    """Plain-text alert body shared by all notifiers."""
    return (
        f"Consumption threshold exceeded for {building_id}\n"
        f"Energy forecast: {predicted_energy} kWh\n"
        f"Water forecast: {predicted_water} m3\n"
        f"Date: {datetime.now():%d.%m.%Y %H:%M}"
    )


def _alert_html(building_id: str, energy: float, water: float, dashboard_url: str) -> str:
    return f"""\
<!DOCTYPE html>
<html>
  <body style="font-family:Arial, sans-serif; background:#f4f4f4; padding:20px;">
    <div style="max-width:600px; margin:auto; background:white; border-radius:10px;">
      <div style="background:#2b5797; color:white; padding:15px; text-align:center;">
        <h2>EcoPulse consumption alert</h2>
      </div>
      <div style="padding:20px;">
        <p>The consumption threshold was exceeded for <strong>{building_id}</strong>:</p>
        <table style="width:100%; border-collapse:collapse;">
          <tr><td style="padding:8px;">Energy</td><td style="padding:8px; color:#d9534f;">{energy} kWh</td></tr>
          <tr><td style="padding:8px;">Water</td><td style="padding:8px; color:#5bc0de;">{water} m&sup3;</td></tr>
        </table>
        <p><a href="{dashboard_url}">Open dashboard</a></p>
        <p>Date: {datetime.now():%d.%m.%Y %H:%M}</p>
      </div>
    </div>
  </body>
</html>"""


class EmailNotifier:
    """SMTP (STARTTLS) email alerts."""

    def __init__(self, config: SmtpConfig):
        self.config = config

    def build_message(self, building_id: str, predicted_energy: float, predicted_water: float) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = f"EcoPulse Alert System <{self.config.user}>"
        msg["To"] = self.config.to
        msg["Subject"] = f"{building_id} consumption alert"
        msg.set_content(format_alert(building_id, predicted_energy, predicted_water))
        msg.add_alternative(
            _alert_html(building_id, predicted_energy, predicted_water, self.config.dashboard_url), subtype="html"
        )
        return msg

    def _send(self, msg: EmailMessage) -> None:
        with smtplib.SMTP(self.config.host, self.config.port, timeout=self.config.timeout) as smtp:
            smtp.starttls()
            smtp.login(self.config.user, self.config.password)
            smtp.send_message(msg)

    async def notify(self, building_id: str, predicted_energy: float, predicted_water: float) -> bool:
        if not self.config.enabled:
            raise NotificationError("EP_SMTP_USER, EP_SMTP_PASS and EP_SMTP_TO must be set")
        msg = self.build_message(building_id, predicted_energy, predicted_water)
        try:
            await asyncio.to_thread(self._send, msg)
        except (OSError, smtplib.SMTPException) as e:
            raise NotificationError(f"Email alert for {building_id} failed: {e}") from e
        logger.info(f"Email alert sent: {building_id} -> {self.config.to}")
        return True


class TelegramNotifier:
    """Telegram bot alerts via the sendMessage API."""

    API_URL = "https://api.telegram.org/bot{token}/sendMessage"

    def __init__(self, config: TelegramConfig, timeout: float = 10.0):
        self.config = config
        self.timeout = timeout

    async def notify(self, building_id: str, predicted_energy: float, predicted_water: float) -> bool:
        if not self.config.enabled:
            raise NotificationError("TELEGRAM_BOT_TOKEN and TELEGRAM_CHAT_ID must be set")
        url = self.API_URL.format(token=self.config.token)
        payload = {
            "chat_id": self.config.chat_id,
            "text": format_alert(building_id, predicted_energy, predicted_water),
        }
        try:
            async with aiohttp.ClientSession() as session, session.post(
                url, json=payload, timeout=aiohttp.ClientTimeout(total=self.timeout)
            ) as resp:
                result = await resp.json()
        except (TimeoutError, aiohttp.ClientError) as e:
            raise NotificationError(f"Telegram alert for {building_id} failed: {e}") from e

        if not result.get("ok"):
            raise NotificationError(f"Telegram API error: {result}")
        logger.info(f"Telegram alert sent: {building_id}")
        return True


class MultiNotifier:
    """Fan an alert out to several notifiers; succeeds if any delivery succeeds."""

    def __init__(self, notifiers: list):
        self.notifiers = notifiers

    async def notify(self, building_id: str, predicted_energy: float, predicted_water: float) -> bool:
        errors = []
        delivered = False
        for notifier in self.notifiers:
            try:
                delivered = await notifier.notify(building_id, predicted_energy, predicted_water) or delivered
            except NotificationError as e:
                errors.append(str(e))
        if not delivered:
            raise NotificationError("; ".join(errors) or "no notifier configured")
        for err in errors:
            logger.warning(err)
        return True


def build_notifier(smtp: SmtpConfig, telegram: TelegramConfig) -> MultiNotifier:
    """Notifier for every delivery channel that is configured."""
    notifiers: list = []
    if smtp.enabled:
        notifiers.append(EmailNotifier(smtp))
    if telegram.enabled:
        notifiers.append(TelegramNotifier(telegram))
    if not notifiers:
        logger.warning("No alert channel configured (SMTP or Telegram); alerts will only be logged")
    return MultiNotifier(notifiers)
