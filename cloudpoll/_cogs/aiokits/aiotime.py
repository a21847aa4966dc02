"""
Advanced modes of sleeping: interruptable by an event, measured in loop time.

All the time measurements use the event loop's clock (``loop.time()``),
not the system's wall clock, so that the sleeps and the deadlines agree
with each other -- and can be faked in tests as a whole.
"""
import asyncio
from typing import Optional


async def sleep(
        delay: Optional[float],
        wakeup: Optional[asyncio.Event] = None,
) -> Optional[float]:
    """
    Measure the sleep time: either until the timeout, or until the event is set.

    Returns the number of seconds left to sleep, or ``None`` if the sleep was
    not interrupted and reached its specified delay (an equivalent of ``0``).
    In theory, the result can be ``0`` if the sleep was interrupted precisely
    the last moment before timing out; this is unlikely to happen though.
    """
    # Do not go for the real low-level system sleep if there is no need to sleep.
    if delay is None or delay <= 0:
        return None

    awakening_event = wakeup if wakeup is not None else asyncio.Event()
    loop = asyncio.get_running_loop()
    try:
        start_time = loop.time()
        await asyncio.wait_for(awakening_event.wait(), timeout=delay)
    except asyncio.TimeoutError:
        return None  # interruptable sleep is over: uninterrupted.
    else:
        end_time = loop.time()
        duration = end_time - start_time
        return max(0, delay - duration)
