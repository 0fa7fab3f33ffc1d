from typing import Any, Dict, Optional

import httpx

from payment_watcher.utils.logger import get_logger

logger = get_logger("slack_client")

SLACK_API_URL = "https://slack.com/api"


class NotificationDeliveryError(RuntimeError):
    """Raised when Slack does not accept a message."""


class SlackClient:
    """
    Thin Slack Web API client authenticated with a bot token.

    Only chat.postMessage is needed here. The underlying httpx.Client is
    thread-safe and shared by every send.
    """

    def __init__(
        self,
        bot_token: str,
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        if not bot_token:
            raise RuntimeError("Missing Slack bot token")

        self._http = httpx.Client(
            base_url=SLACK_API_URL,
            headers={"Authorization": f"Bearer {bot_token}"},
            timeout=timeout,
            transport=transport,
        )

    def post_message(self, channel: str, text: str) -> Dict[str, Any]:
        try:
            resp = self._http.post(
                "/chat.postMessage",
                json={"channel": channel, "text": text},
            )
            resp.raise_for_status()
            data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            raise NotificationDeliveryError(f"chat.postMessage failed: {e}") from e

        # Slack answers 200 even when it rejects the call.
        if not data.get("ok"):
            raise NotificationDeliveryError(
                f"chat.postMessage rejected: {data.get('error', 'unknown_error')}"
            )

        return data

    def close(self) -> None:
        self._http.close()


def build_client(config) -> SlackClient:
    """
    Build the Slack client from the loaded WatcherConfig.
    """
    client = SlackClient(config.slack_bot_token)
    logger.info("Slack client initialized successfully")
    return client
