"""Exponential backoff calculator for failing job commands.

Workers sleep between consecutive failures of their command. The delay
doubles with every consecutive failure and resets after a success.
"""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class ExponentialBackoff:
    """Exponential backoff calculator keyed to consecutive failures.

    The delay formula is:
        delay = base * (2 ^ (failures - 1))

    Attributes:
        base: Delay in seconds after the first failure.
    """

    base: float = 60.0

    def delay(self, failures: int) -> float:
        """Calculate the sleep before the next attempt.

        Args:
            failures: Number of consecutive failures so far.

        Returns:
            The delay in seconds; 0.0 when there has been no failure.
        """
        if failures <= 0:
            return 0.0

        return self.base * (2 ** (failures - 1))
