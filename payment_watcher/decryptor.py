"""
AES-256-GCM decryption of gateway webhook notifications.

The gateway sends the ciphertext as a hex body and the IV and authentication
tag as hex headers. The key is shared out of band.
"""

import json
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

KEY_SIZE = 32
IV_SIZE = 12
TAG_SIZE = 16

HEX_PATTERN = re.compile(r"(?:[0-9a-fA-F]{2})*")


class DecryptionError(Exception):
    """Base class for every way a notification can fail to decrypt."""


class InputDecodingError(DecryptionError):
    """Missing or malformed hex input, or wrong key/iv/tag length."""


class AuthenticationFailure(DecryptionError):
    """The authentication tag did not verify."""


class PayloadParseError(DecryptionError):
    """The plaintext is not the expected JSON document."""


@dataclass(frozen=True)
class DecryptedPayload:
    code: str
    description: Optional[str]
    payload_id: Optional[str]
    entity_id: Optional[str]
    document: Dict[str, Any] = field(repr=False, compare=False)

    @classmethod
    def from_document(cls, document: Any) -> "DecryptedPayload":
        if not isinstance(document, dict):
            raise PayloadParseError("notification is not a JSON object")

        payload = document.get("payload")
        if not isinstance(payload, dict):
            raise PayloadParseError("notification has no payload object")

        result = payload.get("result")
        code = result.get("code") if isinstance(result, dict) else None
        if not isinstance(code, str):
            raise PayloadParseError("payload.result.code is missing")

        authentication = payload.get("authentication")
        entity_id = authentication.get("entityId") if isinstance(authentication, dict) else None

        return cls(
            code=code,
            description=result.get("description"),
            payload_id=payload.get("id"),
            entity_id=entity_id,
            document=document,
        )


def decode_hex(value: Optional[str], name: str) -> bytes:
    if value is None:
        raise InputDecodingError(f"{name} is missing")
    # bytes.fromhex() alone would skip whitespace between digits.
    if not isinstance(value, str) or not HEX_PATTERN.fullmatch(value):
        raise InputDecodingError(f"{name} is not valid hex")
    return bytes.fromhex(value)


def decrypt(key: bytes, iv: bytes, auth_tag: bytes, ciphertext: bytes) -> str:
    """
    Verify and decrypt one message, returning the plaintext as text.
    """
    if len(key) != KEY_SIZE:
        raise InputDecodingError(f"key must be {KEY_SIZE} bytes, got {len(key)}")
    if len(iv) != IV_SIZE:
        raise InputDecodingError(f"iv must be {IV_SIZE} bytes, got {len(iv)}")
    if len(auth_tag) != TAG_SIZE:
        raise InputDecodingError(f"auth tag must be {TAG_SIZE} bytes, got {len(auth_tag)}")

    # AESGCM expects the tag appended to the ciphertext.
    try:
        plaintext = AESGCM(key).decrypt(iv, ciphertext + auth_tag, None)
    except InvalidTag as e:
        raise AuthenticationFailure("authentication tag mismatch") from e

    try:
        return plaintext.decode("utf-8")
    except UnicodeDecodeError as e:
        raise PayloadParseError("plaintext is not UTF-8") from e


def decrypt_envelope(
    key_hex: str,
    iv_hex: Optional[str],
    tag_hex: Optional[str],
    body_hex: Optional[str],
) -> DecryptedPayload:
    """
    Hex-decode, decrypt and parse a gateway notification.

    Raises a DecryptionError subclass; nothing is parsed before the tag
    has verified.
    """
    key = decode_hex(key_hex, "key")
    iv = decode_hex(iv_hex, "x-initialization-vector")
    auth_tag = decode_hex(tag_hex, "x-authentication-tag")
    ciphertext = decode_hex(body_hex, "body")

    text = decrypt(key, iv, auth_tag, ciphertext)

    try:
        document = json.loads(text)
    except json.JSONDecodeError as e:
        raise PayloadParseError("plaintext is not valid JSON") from e

    return DecryptedPayload.from_document(document)
