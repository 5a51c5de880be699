"""
Retry configuration.
"""

from dataclasses import dataclass


@dataclass
class RetryConfig:
    """
    Configuration for retry behavior.

    Attributes:
        max_attempts: Total tries allotted to one call, first one included (default: 6)
        base_wait_ms: Wait before the first retry in milliseconds (default: 800)
        timeout_multiplier: Wait growth factor applied after a timeout (default: 3)
    """

    max_attempts: int = 6
    base_wait_ms: int = 800
    timeout_multiplier: int = 3

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {self.max_attempts}")
        if self.base_wait_ms < 0:
            raise ValueError(f"base_wait_ms must be >= 0, got {self.base_wait_ms}")
        if self.timeout_multiplier < 1:
            raise ValueError(
                f"timeout_multiplier must be >= 1, got {self.timeout_multiplier}"
            )

    def worst_case_wait_ms(self) -> int:
        """Total time spent sleeping when every attempt times out."""
        total = 0
        wait = self.base_wait_ms
        for _ in range(self.max_attempts - 1):
            total += wait
            wait *= self.timeout_multiplier
        return total

    @classmethod
    def patient(cls) -> "RetryConfig":
        """Preset for slow backends (more attempts, longer waits)."""
        return cls(max_attempts=10, base_wait_ms=1000)

    @classmethod
    def impatient(cls) -> "RetryConfig":
        """Preset for latency-sensitive callers (fewer attempts, shorter waits)."""
        return cls(max_attempts=3, base_wait_ms=200, timeout_multiplier=2)

    @classmethod
    def no_retry(cls) -> "RetryConfig":
        """Preset for no retry (single attempt only)."""
        return cls(max_attempts=1)

    @classmethod
    def no_wait(cls) -> "RetryConfig":
        """Default budget without any sleeping between attempts."""
        return cls(base_wait_ms=0)
