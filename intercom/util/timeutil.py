# intercom/util/timeutil.py
from __future__ import annotations

import time


def now_ts() -> int:
    """Unix time in whole seconds."""
    return int(time.time())


def now_ms() -> int:
    """Unix time in milliseconds (wire timestamps)."""
    return int(time.time() * 1000)
