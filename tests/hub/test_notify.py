"""Tests for alert notifiers."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from ecopulse.engine.config import SmtpConfig, TelegramConfig
from ecopulse.hub.notify import EmailNotifier, MultiNotifier, TelegramNotifier, build_notifier, format_alert
from ecopulse.shared.errors import NotificationError

SMTP = SmtpConfig(user="alerts@example.com", password="secret", to="ops@example.com")


def _notifier(result=True, error=None):
    n = MagicMock()
    n.notify = AsyncMock(return_value=result, side_effect=error)
    return n


class TestFormatAlert:
    def test_contains_values(self):
        text = format_alert("B3", 100.0, 1.5)
        assert "B3" in text
        assert "100.0 kWh" in text
        assert "1.5 m3" in text


class TestEmailNotifier:
    def test_message(self):
        msg = EmailNotifier(SMTP).build_message("B3", 100.0, 1.5)
        assert msg["To"] == "ops@example.com"
        assert msg["Subject"] == "B3 consumption alert"
        assert "alerts@example.com" in msg["From"]
        assert msg.get_body(("html",)) is not None

    async def test_sends_over_starttls(self):
        with patch("ecopulse.hub.notify.smtplib.SMTP") as smtp_cls:
            smtp = smtp_cls.return_value.__enter__.return_value
            assert await EmailNotifier(SMTP).notify("B3", 100.0, 1.5) is True

        smtp_cls.assert_called_once_with("smtp.gmail.com", 587, timeout=20.0)
        smtp.starttls.assert_called_once()
        smtp.login.assert_called_once_with("alerts@example.com", "secret")
        smtp.send_message.assert_called_once()

    async def test_smtp_failure(self):
        with patch("ecopulse.hub.notify.smtplib.SMTP", side_effect=OSError("connection refused")):
            with pytest.raises(NotificationError, match="connection refused"):
                await EmailNotifier(SMTP).notify("B3", 100.0, 1.5)

    async def test_disabled(self):
        with pytest.raises(NotificationError):
            await EmailNotifier(SmtpConfig()).notify("B3", 100.0, 1.5)


class TestTelegramNotifier:
    async def test_disabled(self):
        with pytest.raises(NotificationError):
            await TelegramNotifier(TelegramConfig()).notify("B3", 100.0, 1.5)


class TestMultiNotifier:
    async def test_any_success_is_success(self):
        failing = _notifier(error=NotificationError("down"))
        working = _notifier()
        assert await MultiNotifier([failing, working]).notify("B3", 100.0, 1.5) is True
        working.notify.assert_awaited_once_with("B3", 100.0, 1.5)

    async def test_all_failing(self):
        multi = MultiNotifier([_notifier(error=NotificationError("a")), _notifier(error=NotificationError("b"))])
        with pytest.raises(NotificationError, match="a; b"):
            await multi.notify("B3", 100.0, 1.5)

    async def test_no_channels(self):
        with pytest.raises(NotificationError, match="no notifier configured"):
            await MultiNotifier([]).notify("B3", 100.0, 1.5)


class TestBuildNotifier:
    def test_channels_from_config(self):
        multi = build_notifier(SMTP, TelegramConfig(token="t", chat_id="c"))
        assert [type(n) for n in multi.notifiers] == [EmailNotifier, TelegramNotifier]

    def test_nothing_configured(self):
        assert build_notifier(SmtpConfig(), TelegramConfig()).notifiers == []
