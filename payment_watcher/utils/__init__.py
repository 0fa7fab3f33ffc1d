"""
Payment Watcher Utilities
=========================

Shared helper modules for the payment watcher:

- logger.py          → structured JSON logging
- secrets.py         → AWS Secrets Manager integration
- slack_client.py    → bot-token Slack Web API client

Everything here is stateless apart from the configured loggers and is safe to
use from the notification worker threads.
"""

from payment_watcher.utils.logger import get_logger, log

__all__ = [
    "get_logger",
    "log",
]
