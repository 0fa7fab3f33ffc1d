import os
from dataclasses import dataclass
from typing import Optional, Tuple

from payment_watcher.decryptor import HEX_PATTERN
from payment_watcher.result_codes import UNDESIRABLE_CODES, parse_codes
from payment_watcher.utils.logger import get_logger
from payment_watcher.utils.secrets import get_watcher_secrets

logger = get_logger("config")

KEY_HEX_LENGTH = 64


@dataclass(frozen=True)
class WatcherConfig:
    bip_secret: str  # hex encoded AES-256 key
    slack_bot_token: str
    slack_channel_id: str
    server_mode: str = ""
    port: Optional[int] = None
    flagged_codes: Tuple[str, ...] = UNDESIRABLE_CODES
    log_level: str = "INFO"

    @property
    def is_local(self) -> bool:
        return self.server_mode == "TEST"

    def __repr__(self) -> str:
        # Keep secrets out of logs and tracebacks.
        return (
            f"WatcherConfig(slack_channel_id={self.slack_channel_id!r}, "
            f"server_mode={self.server_mode!r}, port={self.port!r}, "
            f"flagged_codes={len(self.flagged_codes)} codes, log_level={self.log_level!r})"
        )


def _fail(msg: str) -> None:
    logger.error(msg)
    raise RuntimeError(msg)


def load_config() -> WatcherConfig:
    """
    Load the watcher configuration from the environment.

    BIP_SECRET: hex AES-256 key shared with the payment gateway
    SLACK_BOT_TOKEN: bot token used for chat.postMessage
    SLACK_CHANNEL_ID: channel that receives the alerts
    SERVER_MODE: "TEST" binds locally on port 3000
    PORT: port provided by the hosting platform (required unless TEST)
    FLAGGED_CODES: optional comma separated replacement for the default codes
    WATCHER_SECRET_NAME: optional Secrets Manager secret for BIP_SECRET and
                         SLACK_BOT_TOKEN when they are not in the environment

    Raises RuntimeError with a clear message if something is missing/invalid.
    """
    bip_secret = os.getenv("BIP_SECRET", "").strip()
    slack_bot_token = os.getenv("SLACK_BOT_TOKEN", "").strip()
    slack_channel_id = os.getenv("SLACK_CHANNEL_ID", "").strip()
    server_mode = os.getenv("SERVER_MODE", "").strip()
    port_str = os.getenv("PORT", "").strip()
    flagged_str = os.getenv("FLAGGED_CODES", "").strip()
    log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    secret_name = os.getenv("WATCHER_SECRET_NAME", "").strip()

    if secret_name and not (bip_secret and slack_bot_token):
        secrets = get_watcher_secrets(secret_name)
        bip_secret = bip_secret or str(secrets.get("bip_secret", "")).strip()
        slack_bot_token = slack_bot_token or str(secrets.get("slack_bot_token", "")).strip()

    missing = []
    if not bip_secret:
        missing.append("BIP_SECRET")
    if not slack_bot_token:
        missing.append("SLACK_BOT_TOKEN")
    if not slack_channel_id:
        missing.append("SLACK_CHANNEL_ID")

    if missing:
        _fail(f"Missing required environment variables: {', '.join(missing)}")

    if len(bip_secret) != KEY_HEX_LENGTH or not HEX_PATTERN.fullmatch(bip_secret):
        _fail(f"Invalid BIP_SECRET: expected {KEY_HEX_LENGTH} hex characters (AES-256 key).")

    port = None
    if port_str:
        try:
            port = int(port_str)
        except ValueError:
            _fail(f"Invalid PORT='{port_str}'. Must be an integer.")

    flagged_codes = parse_codes(flagged_str) if flagged_str else UNDESIRABLE_CODES

    return WatcherConfig(
        bip_secret=bip_secret,
        slack_bot_token=slack_bot_token,
        slack_channel_id=slack_channel_id,
        server_mode=server_mode,
        port=port,
        flagged_codes=flagged_codes,
        log_level=log_level,
    )
