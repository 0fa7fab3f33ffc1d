"""
HTTP server for the watcher.

Translates Flask requests into the same event shape API Gateway hands to the
Lambda handlers, so both deployments run identical code.

Usage:

```
payment-watcher                      # PORT from the platform, binds 0.0.0.0
SERVER_MODE=TEST payment-watcher     # local run on 127.0.0.1:3000
```
"""

import sys
from typing import Tuple

from dotenv import load_dotenv
from flask import Flask, Response, request

from payment_watcher import health
from payment_watcher.config import WatcherConfig, load_config
from payment_watcher.notifier import Notifier
from payment_watcher.utils.logger import get_logger, set_level
from payment_watcher.watcher import build_runtime, handle_watcher_event

logger = get_logger("server")

LOCAL_HOST = "127.0.0.1"
LOCAL_PORT = 3000


def _request_event() -> dict:
    return {
        "rawPath": request.path,
        "headers": {key.lower(): value for key, value in request.headers.items()},
        "body": request.get_data(as_text=True),
        "isBase64Encoded": False,
        "requestContext": {"http": {"method": request.method, "path": request.path}},
    }


def _to_response(result: dict) -> Response:
    return Response(
        result.get("body") or "",
        status=result["statusCode"],
        headers=result.get("headers") or {},
    )


def create_app(config: WatcherConfig, notifier: Notifier) -> Flask:
    app = Flask(__name__)

    @app.post("/watcher")
    def watcher():
        return _to_response(handle_watcher_event(_request_event(), config, notifier))

    @app.get("/health")
    def healthz():
        return _to_response(health.lambda_handler(_request_event(), None))

    return app


def resolve_bind(config: WatcherConfig) -> Tuple[str, int]:
    if config.is_local:
        return LOCAL_HOST, LOCAL_PORT

    if config.port is None:
        msg = "Missing required environment variables: PORT"
        logger.error(msg)
        raise RuntimeError(msg)

    return "0.0.0.0", config.port


def main() -> None:
    load_dotenv()

    try:
        config = load_config()
        set_level(config.log_level)
        host, port = resolve_bind(config)
        config, notifier = build_runtime(config)
    except RuntimeError as e:
        logger.error("server.startup_failed", extra={"error": str(e)})
        sys.exit(1)

    logger.info(
        "server.start",
        extra={"host": host, "port": port, "flagged_codes": len(config.flagged_codes)},
    )

    app = create_app(config, notifier)
    try:
        app.run(host=host, port=port)
    finally:
        notifier.shutdown(wait=True)


if __name__ == "__main__":
    main()
