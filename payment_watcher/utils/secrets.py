import json
import os

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from payment_watcher.utils.logger import get_logger

logger = get_logger("secrets")


def _get_region() -> str:
    """
    AWS_REGION is optional; defaults to us-east-1 when not running inside Lambda.
    """
    return os.getenv("AWS_REGION", "us-east-1")


def get_watcher_secrets(secret_name: str, region_name: str = None) -> dict:
    """
    Fetch watcher credentials from AWS Secrets Manager.

    Expects the secret value to be a JSON object, e.g.:

        {
          "bip_secret": "<64 hex chars>",
          "slack_bot_token": "xoxb-..."
        }
    """
    region_name = region_name or _get_region()

    logger.info(
        "secrets.fetch",
        extra={"secret_name": secret_name, "region": region_name},
    )

    try:
        client = boto3.client("secretsmanager", region_name=region_name)
        resp = client.get_secret_value(SecretId=secret_name)
    except (BotoCoreError, ClientError) as e:
        logger.error(
            "secrets.fetch_failed",
            extra={"secret_name": secret_name, "error": str(e)},
        )
        raise RuntimeError(f"Could not read secret '{secret_name}': {e}") from e

    secret_str = resp.get("SecretString")

    if not secret_str:
        msg = f"Secret '{secret_name}' has no SecretString payload"
        logger.error(msg)
        raise RuntimeError(msg)

    try:
        data = json.loads(secret_str)
    except json.JSONDecodeError as e:
        logger.error(
            "secrets.invalid_json",
            extra={"secret_name": secret_name, "error": str(e)},
        )
        raise RuntimeError(f"Secret '{secret_name}' is not valid JSON") from e

    if not isinstance(data, dict):
        raise RuntimeError(f"Secret '{secret_name}' must be a JSON object")

    return data
