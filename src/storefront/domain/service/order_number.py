"""Human-readable order numbers: ``PREFIX-<8 digits>-<4 digits>``.

The eight digits are the low end of the millisecond clock, the last four
are random.  Collisions are possible and are handled by the caller
retrying with a fresh number when the repository reports a duplicate.
The format is public (customers quote it) and must stay stable.
"""

from __future__ import annotations

import random
import re
import time
from typing import Callable

DEFAULT_PREFIX = "ATW"

ORDER_NUMBER_PATTERN = re.compile(r"^[A-Z0-9]+-\d{8}-\d{4}$")


class OrderNumberGenerator:

    def __init__(
        self,
        prefix: str = DEFAULT_PREFIX,
        clock_ms: Callable[[], int] | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._prefix = prefix.upper()
        self._clock_ms = clock_ms or (lambda: time.time_ns() // 1_000_000)
        self._rng = rng or random.SystemRandom()

    def generate(self) -> str:
        timestamp = str(self._clock_ms()).rjust(8, "0")[-8:]
        suffix = f"{self._rng.randrange(10_000):04d}"
        return f"{self._prefix}-{timestamp}-{suffix}"
