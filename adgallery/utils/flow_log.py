"""Timestamped flow logging shared by the gallery components."""

import os
import time

_flow_log_last: dict[str, float] = {}


def _trace_enabled() -> bool:
    if os.getenv('ADGALLERY_TRACE') == '1':
        return True
    try:
        from adgallery.utils.settings import settings
        return bool(settings.value('trace_logs', False, type=bool))
    except Exception:
        return False


def log_flow(component: str, message: str, *, level: str = "DEBUG",
             throttle_key: str | None = None, every_s: float | None = None):
    """Timestamped, optionally throttled flow logging for layout/preview diagnostics."""
    if level == "DEBUG" and not _trace_enabled():
        return

    now = time.time()
    if throttle_key and every_s is not None:
        last = _flow_log_last.get(throttle_key, 0.0)
        if (now - last) < every_s:
            return
        _flow_log_last[throttle_key] = now
    ts = time.strftime("%H:%M:%S", time.localtime(now)) + f".{int((now % 1) * 1000):03d}"
    print(f"[{ts}][TRACE][{component}][{level}] {message}")
