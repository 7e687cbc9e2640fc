"""
Notification Service - Telegram / E-mail Alerts
===============================================
Delivers the per-cycle summary. Callers treat delivery as best effort.
"""

import time
from typing import List, Optional

import requests

from config.settings import Settings
from reclaimer.shared.system.logging import Logger


class TelegramNotifier:
    """Telegram Bot API sender with a plain-text fallback."""

    # Retry delays on timeout / 429
    BACKOFF_DELAYS = (1, 2, 4)

    def __init__(self, token: str = "", chat_id: str = "", sleep=time.sleep):
        self.token = token or Settings.TELEGRAM_BOT_TOKEN
        self.chat_id = chat_id or Settings.TELEGRAM_CHAT_ID
        self.base_url = f"https://api.telegram.org/bot{self.token}/sendMessage"
        self._sleep = sleep
        self.enabled = bool(self.token and self.chat_id)
        if not self.enabled:
            Logger.warning("[NOTIFY] Telegram token/chat id not set. Telegram alerts disabled.")

    def notify(self, message: str) -> bool:
        """
        Send ``message`` (Markdown).

        Returns:
            True if Telegram accepted it.
        """
        if not self.enabled:
            return False

        params = {
            "chat_id": self.chat_id,
            "text": message,
            "parse_mode": "Markdown",
        }

        for delay in self.BACKOFF_DELAYS:
            try:
                response = requests.post(self.base_url, json=params, timeout=5)
            except requests.exceptions.Timeout:
                self._sleep(delay)
                continue

            if response.status_code == 200:
                return True
            if response.status_code == 429:
                Logger.warning(f"[NOTIFY] Telegram rate limit (429), retry in {delay}s")
                self._sleep(delay)
                continue
            if response.status_code == 400 and "parse entities" in response.text and "parse_mode" in params:
                # Markdown Telegram could not parse: resend as plain text
                Logger.warning("[NOTIFY] Markdown rejected, retrying as plain text")
                params.pop("parse_mode")
                continue

            Logger.error(f"[NOTIFY] Telegram error {response.status_code}: {response.text}")
            return False

        Logger.error("[NOTIFY] Telegram delivery failed after retries")
        return False


class EmailNotifier:
    """E-mail via the Resend HTTP API."""

    API_URL = "https://api.resend.com/emails"

    def __init__(self, api_key: str = "", to: str = "", sender: str = "",
                 subject: str = "Kora Rent Reclaim Summary"):
        self.api_key = api_key or Settings.RESEND_API_KEY
        self.to = to or Settings.ALERT_EMAIL_TO
        self.sender = sender or Settings.ALERT_EMAIL_FROM
        self.subject = subject
        self.enabled = bool(self.api_key and self.to)
        if not self.enabled:
            Logger.warning("[NOTIFY] Resend key/recipient not set. E-mail alerts disabled.")

    def notify(self, message: str) -> bool:
        if not self.enabled:
            return False

        response = requests.post(
            self.API_URL,
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
            },
            json={
                "from": self.sender,
                "to": [self.to],
                "subject": self.subject,
                "text": message,
            },
            timeout=10,
        )
        if response.status_code >= 300:
            Logger.error(f"[NOTIFY] Resend error {response.status_code}: {response.text}")
            return False
        return True


class CompositeNotifier:
    """Fan out to several notifiers; one failing does not stop the others."""

    def __init__(self, notifiers: List):
        self.notifiers = list(notifiers)

    def notify(self, message: str) -> bool:
        delivered = False
        for notifier in self.notifiers:
            try:
                delivered = notifier.notify(message) or delivered
            except Exception as e:
                Logger.warning(f"[NOTIFY] {type(notifier).__name__} failed: {e}")
        return delivered


def build_notifier(config) -> Optional[CompositeNotifier]:
    """Notifier for the channels enabled in ``config``; None if none are."""
    notifiers = []
    if config.tg_alert:
        notifiers.append(TelegramNotifier())
    if config.email_alert:
        notifiers.append(EmailNotifier())
    return CompositeNotifier(notifiers) if notifiers else None
