from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import TypeVar

from pageorient.exceptions import DetectionTimeoutError

ResultT = TypeVar("ResultT")


async def run_with_deadline(
    function: Callable[[bytes], ResultT],
    image_bytes: bytes,
    timeout_ms: int,
) -> ResultT:
    """Run a blocking detector call in a worker thread, bounded by ``timeout_ms``.

    The worker thread is abandoned on expiry, not interrupted: it keeps running
    until the detector returns and its result is discarded.
    """
    pending_call = asyncio.to_thread(function, image_bytes)
    try:
        return await asyncio.wait_for(pending_call, timeout=timeout_ms / 1000)
    except asyncio.TimeoutError:
        raise DetectionTimeoutError("OCR processing timed out.") from None
