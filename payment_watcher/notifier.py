from concurrent.futures import Executor, Future, ThreadPoolExecutor
from typing import List, Optional, Sequence

from payment_watcher.decryptor import DecryptedPayload
from payment_watcher.utils.logger import get_logger

logger = get_logger("notifier")

ALERT_TEMPLATE = (
    ":warning: *Detected Undesireable Result Code* :warning: \n\n"
    "*{code}*\n{description}\n\n"
    "*ID*\n{payload_id}\n\n"
    "*Entity ID*\n{entity_id}\n\n\n"
    "Please check the entity for further investigation."
)


def find_matches(code: str, flagged_codes: Sequence[str]) -> List[str]:
    """
    Every entry of the flagged set equal to `code`.
    The whole set is scanned, so a duplicated entry yields a duplicate match.
    """
    return [flagged for flagged in flagged_codes if flagged == code]


def build_message(payload: DecryptedPayload) -> str:
    return ALERT_TEMPLATE.format(
        code=payload.code,
        description=payload.description or "-",
        payload_id=payload.payload_id or "-",
        entity_id=payload.entity_id or "-",
    )


class Notifier:
    """
    Posts alerts for flagged result codes to a Slack channel.

    Sends are fire-and-forget: notify() hands each one to the executor and
    returns straight away. Outcomes are only logged.
    """

    def __init__(self, client, channel_id: str, executor: Optional[Executor] = None):
        self._client = client
        self._channel_id = channel_id
        self._executor = executor or ThreadPoolExecutor(
            max_workers=4, thread_name_prefix="notifier"
        )

    def notify(self, payload: DecryptedPayload, flagged_codes: Sequence[str]) -> List[Future]:
        matches = find_matches(payload.code, flagged_codes)
        if not matches:
            return []

        text = build_message(payload)
        futures = []
        for code in matches:
            logger.warning(
                "notifier.undesirable_code",
                extra={"code": code, "payload_id": payload.payload_id},
            )
            future = self._executor.submit(self._send, text)
            future.add_done_callback(
                lambda f, code=code: self._log_outcome(f, code, payload.payload_id)
            )
            futures.append(future)

        return futures

    def _send(self, text: str) -> dict:
        return self._client.post_message(channel=self._channel_id, text=text)

    def _log_outcome(self, future: Future, code: str, payload_id: Optional[str]) -> None:
        if future.cancelled():
            logger.warning("notifier.send_cancelled", extra={"code": code, "payload_id": payload_id})
            return

        error = future.exception()
        if error is not None:
            logger.error(
                "notifier.send_failed",
                extra={
                    "code": code,
                    "payload_id": payload_id,
                    "error": str(error),
                    "error_type": type(error).__name__,
                },
            )
            return

        resp = future.result() or {}
        logger.info(
            "notifier.sent",
            extra={
                "code": code,
                "payload_id": payload_id,
                "channel": self._channel_id,
                "ts": resp.get("ts"),
            },
        )

    def shutdown(self, wait: bool = True) -> None:
        """
        Stop accepting sends, then close the Slack client.
        With wait=False, sends still queued may fail against the closed client and are logged.
        """
        self._executor.shutdown(wait=wait)
        self._client.close()
