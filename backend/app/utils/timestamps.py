from datetime import datetime, timezone


def utc_now() -> str:
    # Microsecond precision keeps newest-first ordering stable for quick successive writes.
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")
