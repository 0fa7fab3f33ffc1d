import base64
import binascii
import json
from typing import Optional, Tuple

from payment_watcher.config import WatcherConfig, load_config
from payment_watcher.decryptor import DecryptionError, decrypt_envelope
from payment_watcher.notifier import Notifier
from payment_watcher.utils.logger import get_logger
from payment_watcher.utils.slack_client import build_client

logger = get_logger("watcher")

IV_HEADER = "x-initialization-vector"
TAG_HEADER = "x-authentication-tag"

# Config, Slack client and notifier are built once per container
_runtime: Optional[Tuple[WatcherConfig, Notifier]] = None


def build_runtime(config: WatcherConfig) -> Tuple[WatcherConfig, Notifier]:
    client = build_client(config)
    return config, Notifier(client, config.slack_channel_id)


def _get_runtime() -> Tuple[WatcherConfig, Notifier]:
    global _runtime
    if _runtime is None:
        _runtime = build_runtime(load_config())
    return _runtime


def _error_response(status: int, body: dict) -> dict:
    return {
        "statusCode": status,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps(body),
    }


def _header(event: dict, name: str) -> Optional[str]:
    """
    Header lookup that does not depend on the casing the caller used.
    """
    for key, value in (event.get("headers") or {}).items():
        if key.lower() == name:
            return value
    return None


def _body_text(event: dict) -> Optional[str]:
    body = event.get("body")
    if body is None or not event.get("isBase64Encoded"):
        return body

    try:
        return base64.b64decode(body).decode("ascii")
    except (binascii.Error, UnicodeDecodeError):
        # Leave it to hex decoding to reject.
        return body


def handle_watcher_event(event: dict, config: WatcherConfig, notifier: Notifier) -> dict:
    """
    Decrypt one gateway notification and alert on undesirable result codes.

    Any decryption failure answers 500 {"msg": "Decryption failed"} and
    stops there. Alerts are dispatched without waiting for Slack.
    """
    try:
        payload = decrypt_envelope(
            config.bip_secret,
            _header(event, IV_HEADER),
            _header(event, TAG_HEADER),
            _body_text(event),
        )
    except DecryptionError as e:
        logger.warning(
            "watcher.decrypt_failed",
            extra={"error_type": type(e).__name__, "error": str(e)},
        )
        return _error_response(500, {"msg": "Decryption failed"})

    logger.info(
        "watcher.result_code",
        extra={"code": payload.code, "payload_id": payload.payload_id},
    )

    futures = notifier.notify(payload, config.flagged_codes)
    if futures:
        logger.info(
            "watcher.alerts_dispatched",
            extra={"code": payload.code, "count": len(futures)},
        )

    return {"statusCode": 200, "body": ""}


def lambda_handler(event, context):
    logger.info(
        "watcher.lambda_start",
        extra={"request_id": getattr(context, "aws_request_id", None)},
    )

    try:
        config, notifier = _get_runtime()
    except RuntimeError as e:
        # Misconfiguration is a 500, not a 4xx
        logger.error("watcher.env_error", extra={"error": str(e)})
        return _error_response(500, {"error": "server_misconfigured"})

    return handle_watcher_event(event, config, notifier)
