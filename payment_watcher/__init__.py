"""
Payment Watcher
===============

Relays encrypted payment-gateway webhook notifications to Slack. Each
notification is decrypted (AES-256-GCM), its result code is checked against a
fixed set of undesirable codes, and a match is posted to a Slack channel.

Modules under this package:
- watcher.py       → webhook handler (/watcher)
- health.py        → health check (/health)
- server.py        → Flask server for local and platform-hosted runs
- decryptor.py     → envelope decryption and payload parsing
- notifier.py      → code matching, alert formatting, fire-and-forget sends
- result_codes.py  → default undesirable result codes
- config.py        → environment configuration
- utils/           → logging, secrets, Slack client

Environment variables expected:
  • BIP_SECRET             - hex AES-256 key shared with the gateway
  • SLACK_BOT_TOKEN        - Slack bot token
  • SLACK_CHANNEL_ID       - channel receiving the alerts
  • SERVER_MODE            - "TEST" for local binding on port 3000
  • PORT                   - platform provided port
  • FLAGGED_CODES          - optional comma separated code override
  • WATCHER_SECRET_NAME    - optional Secrets Manager secret name
  • LOG_LEVEL              - Log verbosity (default: INFO)

Handlers keep no state between requests.
"""

__version__ = "1.0.0"
__license__ = "MIT"

__all__ = ["__version__"]
