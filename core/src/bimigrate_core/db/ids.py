from __future__ import annotations

import time
import uuid


def new_external_id(kind: str, *, index: int = 1) -> str:
    """Generate an external (source-system) identifier for a discovered asset.

    The nanosecond clock plus a random suffix keeps ids unique across sync calls,
    including calls that land within the same clock tick.
    """

    return f"ext_{time.time_ns()}_{uuid.uuid4().hex[:8]}_{kind}_{index}"
