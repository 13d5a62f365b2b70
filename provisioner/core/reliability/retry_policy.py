"""
Retry policy — bounded exponential backoff for transient failures.

The schedule is deterministic (no jitter) so tests can assert
the exact waits.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    """How many times to try, and how long to wait between tries."""

    max_attempts: int = 3
    base_delay: float = 1.0
    max_delay: float = 30.0

    def delay_before(self, attempt: int) -> float:
        """Seconds to wait before ``attempt`` (1-based). The first try never waits."""
        if attempt <= 1:
            return 0.0
        return min(self.base_delay * (2 ** (attempt - 2)), self.max_delay)

    def schedule(self) -> list[float]:
        """Every wait the policy can incur, in order."""
        return [self.delay_before(n) for n in range(2, self.max_attempts + 1)]


# Single attempt, no waiting: local operations that cannot be transient
NO_RETRY = RetryPolicy(max_attempts=1)

# Network-bound strategies: 3 tries, waiting 1 s then 2 s
NETWORK_RETRY = RetryPolicy(max_attempts=3, base_delay=1.0)
