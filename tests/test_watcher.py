import base64
import json
from dataclasses import replace

import pytest
from botocore.exceptions import ClientError

from conftest import FLAGGED_NOTIFICATION, encrypt_document, notification_with_code
from payment_watcher import watcher
from payment_watcher.utils import secrets


def _event(iv, tag, body, base64_body=False):
    if base64_body:
        body = base64.b64encode(body.encode("ascii")).decode("ascii")
    return {
        "rawPath": "/watcher",
        "headers": {
            "content-type": "text/plain",
            "x-initialization-vector": iv,
            "x-authentication-tag": tag,
        },
        "body": body,
        "isBase64Encoded": base64_body,
        "requestContext": {"http": {"method": "POST", "path": "/watcher"}},
    }


def _assert_decryption_failed(resp):
    assert resp["statusCode"] == 500
    assert json.loads(resp["body"]) == {"msg": "Decryption failed"}


def test_flagged_code_posts_one_alert(config, notifier, slack):
    event = _event(*encrypt_document(FLAGGED_NOTIFICATION))

    resp = watcher.handle_watcher_event(event, config, notifier)

    assert resp["statusCode"] == 200
    assert resp["body"] == ""
    assert len(slack.sent) == 1
    text = slack.sent[0]["text"]
    assert "900.100.600" in text
    assert "abc123" in text
    assert "ent-42" in text


def test_unflagged_code_posts_nothing(config, notifier, slack):
    event = _event(*encrypt_document(notification_with_code("000.000.000")))

    resp = watcher.handle_watcher_event(event, config, notifier)

    assert resp["statusCode"] == 200
    assert slack.sent == []


@pytest.mark.parametrize("field", ["iv", "tag", "body"])
def test_malformed_hex_returns_decryption_failed(config, notifier, slack, field):
    parts = dict(zip(("iv", "tag", "body"), encrypt_document(FLAGGED_NOTIFICATION)))
    parts[field] = "not-hex!"

    resp = watcher.handle_watcher_event(_event(parts["iv"], parts["tag"], parts["body"]), config, notifier)

    _assert_decryption_failed(resp)
    assert slack.sent == []


def test_tampered_body_returns_decryption_failed(config, notifier, slack):
    iv, tag, body = encrypt_document(FLAGGED_NOTIFICATION)
    tampered = ("0" if body[0] != "0" else "1") + body[1:]

    resp = watcher.handle_watcher_event(_event(iv, tag, tampered), config, notifier)

    _assert_decryption_failed(resp)
    assert slack.sent == []


def test_missing_headers_return_decryption_failed(config, notifier, slack):
    event = _event(*encrypt_document(FLAGGED_NOTIFICATION))
    event["headers"] = {}

    _assert_decryption_failed(watcher.handle_watcher_event(event, config, notifier))
    assert slack.sent == []


def test_error_body_does_not_leak_detail(config, notifier):
    iv, tag, body = encrypt_document("not json")

    resp = watcher.handle_watcher_event(_event(iv, tag, body), config, notifier)

    _assert_decryption_failed(resp)
    assert "json" not in resp["body"].lower()


def test_headers_are_case_insensitive(config, notifier, slack):
    iv, tag, body = encrypt_document(FLAGGED_NOTIFICATION)
    event = _event(iv, tag, body)
    event["headers"] = {"X-Initialization-Vector": iv, "X-Authentication-Tag": tag}

    assert watcher.handle_watcher_event(event, config, notifier)["statusCode"] == 200
    assert len(slack.sent) == 1


def test_base64_encoded_body_is_unwrapped(config, notifier, slack):
    event = _event(*encrypt_document(FLAGGED_NOTIFICATION), base64_body=True)

    assert watcher.handle_watcher_event(event, config, notifier)["statusCode"] == 200
    assert len(slack.sent) == 1


def test_custom_flagged_codes_are_honoured(config, notifier, slack):
    custom = replace(config, flagged_codes=("000.000.000",))
    event = _event(*encrypt_document(notification_with_code("000.000.000")))

    watcher.handle_watcher_event(event, custom, notifier)

    assert len(slack.sent) == 1


def test_lambda_handler_uses_cached_runtime(monkeypatch, config, notifier, slack):
    monkeypatch.setattr(watcher, "_runtime", (config, notifier))

    resp = watcher.lambda_handler(_event(*encrypt_document(FLAGGED_NOTIFICATION)), None)

    assert resp["statusCode"] == 200
    assert len(slack.sent) == 1


def test_lambda_handler_reports_misconfiguration(monkeypatch, clean_env):
    monkeypatch.setattr(watcher, "_runtime", None)

    resp = watcher.lambda_handler(_event("00", "00", "00"), None)

    assert resp["statusCode"] == 500
    assert json.loads(resp["body"]) == {"error": "server_misconfigured"}


def test_lambda_handler_reports_unreadable_secret(monkeypatch, clean_env):
    monkeypatch.setattr(watcher, "_runtime", None)
    monkeypatch.setenv("SLACK_CHANNEL_ID", "C0123456")
    monkeypatch.setenv("WATCHER_SECRET_NAME", "watcher/prod")

    class FailingSecretsManager:
        def get_secret_value(self, SecretId):
            raise ClientError(
                {"Error": {"Code": "ResourceNotFoundException", "Message": "missing"}},
                "GetSecretValue",
            )

    class FakeBoto3:
        def client(self, name, region_name=None):
            return FailingSecretsManager()

    monkeypatch.setattr(secrets, "boto3", FakeBoto3())

    resp = watcher.lambda_handler(_event("00", "00", "00"), None)

    assert resp["statusCode"] == 500
    assert json.loads(resp["body"]) == {"error": "server_misconfigured"}
