from datetime import datetime, timezone
from flask import current_app, has_app_context


def utcnow() -> datetime:
    """Current naive UTC time.

    Tests pin time by setting ``app.config["CLOCK"]`` to a zero-argument
    callable.
    """
    if has_app_context():
        clock = current_app.config.get("CLOCK")
        if clock is not None:
            return clock()
    return datetime.now(timezone.utc).replace(tzinfo=None)
