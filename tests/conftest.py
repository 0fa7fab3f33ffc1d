import json
import os
from concurrent.futures import Executor, Future

import pytest
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from payment_watcher.config import WatcherConfig
from payment_watcher.notifier import Notifier

KEY_HEX = "000102030405060708090a0b0c0d0e0f101112131415161718191a1b1c1d1e1f"
IV_HEX = "a1a2a3a4a5a6a7a8a9aaabac"

FLAGGED_NOTIFICATION = {
    "payload": {
        "id": "abc123",
        "result": {"code": "900.100.600", "description": "connector/acquirer currently down"},
        "authentication": {"entityId": "ent-42"},
    }
}


def encrypt_document(document, key_hex=KEY_HEX, iv_hex=IV_HEX):
    """
    Encrypt a notification the way the gateway does.
    Returns (iv_hex, tag_hex, body_hex).
    """
    plaintext = document if isinstance(document, str) else json.dumps(document)
    sealed = AESGCM(bytes.fromhex(key_hex)).encrypt(
        bytes.fromhex(iv_hex), plaintext.encode("utf-8"), None
    )
    ciphertext, tag = sealed[:-16], sealed[-16:]
    return iv_hex, tag.hex(), ciphertext.hex()


def notification_with_code(code):
    doc = json.loads(json.dumps(FLAGGED_NOTIFICATION))
    doc["payload"]["result"]["code"] = code
    return doc


class StubSlackClient:
    def __init__(self, fail=False):
        self.sent = []
        self.fail = fail
        self.closed = False

    def post_message(self, channel, text):
        self.sent.append({"channel": channel, "text": text})
        if self.fail:
            raise RuntimeError("slack is down")
        return {"ok": True, "ts": "1700000000.000100"}

    def close(self):
        self.closed = True


class InlineExecutor(Executor):
    """Runs submitted work immediately so tests can assert right after."""

    def submit(self, fn, *args, **kwargs):
        future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as e:
            future.set_exception(e)
        return future


@pytest.fixture
def config():
    return WatcherConfig(
        bip_secret=KEY_HEX,
        slack_bot_token="xoxb-test",
        slack_channel_id="C0123456",
    )


@pytest.fixture
def slack():
    return StubSlackClient()


@pytest.fixture
def notifier(slack, config):
    return Notifier(slack, config.slack_channel_id, executor=InlineExecutor())


@pytest.fixture
def clean_env(monkeypatch):
    for name in (
        "BIP_SECRET",
        "SLACK_BOT_TOKEN",
        "SLACK_CHANNEL_ID",
        "SERVER_MODE",
        "PORT",
        "FLAGGED_CODES",
        "LOG_LEVEL",
        "WATCHER_SECRET_NAME",
    ):
        monkeypatch.delenv(name, raising=False)
    return os.environ
