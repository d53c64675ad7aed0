from __future__ import annotations

from datetime import datetime


def current_time_string(now: datetime | None = None) -> str:
    moment = now or datetime.now()
    return f"Current time is {moment.strftime('%Y-%m-%d %H:%M:%S')}\n"
