"""Lock timing configuration."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator


class LockSettings(BaseModel):
    """
    Timing knobs shared by every lock operation of a manager.

    Attributes:
        max_read_lock_time: TTL of a read key (seconds).
        max_write_lock_time: TTL of the write key (seconds).
        base_delay: Starting backoff delay (seconds).
        delay_offset_min: Lower bound of the random jitter added per retry.
        delay_offset_max: Upper bound of the random jitter added per retry.
        max_retries: Total number of acquisition attempts per call.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    max_read_lock_time: float = Field(default=240.0, gt=0)
    max_write_lock_time: float = Field(default=30.0, gt=0)
    base_delay: float = Field(default=0.1, gt=0)
    delay_offset_min: float = Field(default=0.01, ge=0)
    delay_offset_max: float = Field(default=0.1, ge=0)
    max_retries: int = Field(default=3, ge=1)

    @model_validator(mode="after")
    def _check_offsets(self) -> LockSettings:
        if self.delay_offset_min > self.delay_offset_max:
            raise ValueError(
                f"delay_offset_min ({self.delay_offset_min}) must not exceed "
                f"delay_offset_max ({self.delay_offset_max})"
            )
        return self

    @property
    def read_ttl_ms(self) -> int:
        return max(1, int(self.max_read_lock_time * 1000))

    @property
    def write_ttl_ms(self) -> int:
        return max(1, int(self.max_write_lock_time * 1000))
