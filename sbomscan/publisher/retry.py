import random
from collections.abc import Iterator
from dataclasses import dataclass

from sbomscan.consts import CONSOLE_MAX_RETRIES


@dataclass(frozen=True)
class RetryPolicy:
    """How many times a console call is retried and how long to wait in between.

    The policy itself holds no state. Each call to :meth:`delays` starts a
    fresh schedule, so concurrent requests never see each other's failures.
    """

    max_retries: int = CONSOLE_MAX_RETRIES
    initial_delay: float = 1.0
    max_delay: float = 60.0
    backoff_factor: float = 2.0
    jitter_factor: float = 0.1

    def delays(self) -> Iterator[float]:
        """Yield one wait per allowed retry: initial_delay, then growing by backoff_factor.

        Each wait is capped at max_delay before +/- jitter_factor is applied.
        The iterator is exhausted once max_retries waits have been handed out.
        """
        delay = self.initial_delay
        for _ in range(self.max_retries):
            capped = min(delay, self.max_delay)
            jitter = capped * self.jitter_factor * (2 * random.random() - 1)
            yield max(capped + jitter, 0.0)
            delay = capped * self.backoff_factor
