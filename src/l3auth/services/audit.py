"""Security event logging for login and logout."""

from __future__ import annotations

import json
import logging

audit_logger = logging.getLogger("l3auth.audit")


def log_auth_event(level: int, event_type: str, account: str, reason: str | None = None) -> None:
    """Emit `<type> <json>` on the audit logger.

    Only the account and the failure reason are recorded; signatures and
    message bodies never reach the log.
    """
    event: dict[str, str] = {"type": event_type, "account": account}
    if reason is not None:
        event["reason"] = reason
    audit_logger.log(level, "%s %s", event_type, json.dumps(event, sort_keys=True))
