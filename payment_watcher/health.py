import json

from payment_watcher import __version__
from payment_watcher.utils.logger import log


def lambda_handler(event, context):
    method = (event.get("requestContext") or {}).get("http", {}).get("method", "GET")
    log("health.check", path="/health", method=method)
    return {
        "statusCode": 200,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps({"status": "ok", "version": __version__}),
    }
