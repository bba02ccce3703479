from datetime import datetime, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def now_iso() -> str:
    return utc_now().isoformat()


def now_millis() -> int:
    return int(utc_now().timestamp() * 1000)
