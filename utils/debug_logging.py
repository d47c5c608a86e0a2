"""
Opt-in settlement trace.

When SETTLEMENT_TRACE_PATH is set, each resolution and cancellation appends one
JSON line describing the money it moved. Used to audit payouts after the fact
without raising the normal log level.
"""

from __future__ import annotations

import json
import logging
import os
import time
from typing import Any

logger = logging.getLogger("plottwist.utils.trace")


def trace_settlement(event: str, prediction_id: int, data: dict[str, Any] | None = None) -> bool:
    """
    Append a settlement record to SETTLEMENT_TRACE_PATH if configured.

    Returns True when a line was written.
    """
    path = os.getenv("SETTLEMENT_TRACE_PATH")
    if not path:
        return False

    record = {
        "event": event,
        "prediction_id": prediction_id,
        "timestamp": int(time.time()),
        "data": data or {},
    }

    try:
        with open(path, "a", encoding="utf-8") as f:
            f.write(json.dumps(record, default=str) + "\n")
    except OSError as exc:
        logger.warning(f"Could not write settlement trace to {path}: {exc}")
        return False
    return True
