"""
Notification Unit Tests
=======================
Telegram retry/fallback behaviour and channel fan-out. HTTP is patched.
"""

from unittest.mock import MagicMock, patch

import pytest


def _response(status_code, text=""):
    response = MagicMock()
    response.status_code = status_code
    response.text = text
    return response


@pytest.fixture
def telegram():
    from reclaimer.utils.notifications import TelegramNotifier
    return TelegramNotifier(token="123:abc", chat_id="42", sleep=lambda s: None)


class TestTelegramNotifier:

    def test_disabled_without_credentials(self, monkeypatch):
        from reclaimer.utils.notifications import TelegramNotifier

        monkeypatch.setattr("config.settings.Settings.TELEGRAM_BOT_TOKEN", "")
        monkeypatch.setattr("config.settings.Settings.TELEGRAM_CHAT_ID", "")

        notifier = TelegramNotifier()
        assert not notifier.enabled
        assert notifier.notify("hello") is False

    def test_markdown_delivery(self, telegram):
        with patch("reclaimer.utils.notifications.requests.post", return_value=_response(200)) as post:
            assert telegram.notify("*bold*") is True

        payload = post.call_args.kwargs["json"]
        assert payload["chat_id"] == "42"
        assert payload["parse_mode"] == "Markdown"

    def test_rate_limit_retried(self, telegram):
        responses = [_response(429), _response(200)]
        with patch("reclaimer.utils.notifications.requests.post", side_effect=responses) as post:
            assert telegram.notify("msg") is True
        assert post.call_count == 2

    def test_plain_text_fallback(self, telegram):
        responses = [_response(400, "Bad Request: can't parse entities"), _response(200)]
        with patch("reclaimer.utils.notifications.requests.post", side_effect=responses) as post:
            assert telegram.notify("unbalanced *markdown") is True

        assert "parse_mode" not in post.call_args.kwargs["json"]

    def test_gives_up_after_backoff(self, telegram):
        with patch("reclaimer.utils.notifications.requests.post", return_value=_response(429)) as post:
            assert telegram.notify("msg") is False
        assert post.call_count == len(telegram.BACKOFF_DELAYS)

    def test_other_error_not_retried(self, telegram):
        with patch("reclaimer.utils.notifications.requests.post", return_value=_response(403, "Forbidden")) as post:
            assert telegram.notify("msg") is False
        assert post.call_count == 1


class TestCompositeNotifier:

    def test_one_failure_does_not_stop_others(self):
        from reclaimer.utils.notifications import CompositeNotifier
        from tests.mocks import RecordingNotifier

        broken = RecordingNotifier(fail_with=RuntimeError("smtp down"))
        working = RecordingNotifier()

        assert CompositeNotifier([broken, working]).notify("summary") is True
        assert working.messages == ["summary"]


class TestBuildNotifier:

    def test_none_when_all_disabled(self):
        from reclaimer.modules.reclaim.config import ReclaimConfig
        from reclaimer.utils.notifications import build_notifier

        assert build_notifier(ReclaimConfig(tg_alert=False, email_alert=False)) is None

    def test_channels_follow_flags(self):
        from reclaimer.modules.reclaim.config import ReclaimConfig
        from reclaimer.utils.notifications import EmailNotifier, TelegramNotifier, build_notifier

        notifier = build_notifier(ReclaimConfig(tg_alert=True, email_alert=True))
        assert [type(n) for n in notifier.notifiers] == [TelegramNotifier, EmailNotifier]
