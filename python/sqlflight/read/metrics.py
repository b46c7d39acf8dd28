"""Metrics collection for cursor batch reads."""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

logger = logging.getLogger("sqlflight.read")


@dataclass
class ReaderMetrics:
    """Per-reader read statistics."""

    batches: int = 0
    row_count: int = 0
    byte_count: int = 0
    wall_time_ms: float = 0.0
    error: Optional[str] = None

    def record_batch(self, num_rows: int, num_bytes: int, wall_time_ms: float) -> None:
        """
        Account for one finalized batch.

        Args:
            num_rows: Rows in the batch
            num_bytes: Buffer size of the batch
            wall_time_ms: Time spent filling the batch
        """
        self.batches += 1
        self.row_count += num_rows
        self.byte_count += num_bytes
        self.wall_time_ms += wall_time_ms

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "batches": self.batches,
            "row_count": self.row_count,
            "byte_count": self.byte_count,
            "wall_time_ms": self.wall_time_ms,
            "error": self.error,
        }

    def log_summary(self) -> None:
        """Log summary statistics."""
        logger.info(
            f"Cursor read completed: {self.row_count:,} rows, "
            f"{self.byte_count:,} bytes in {self.batches} batches, "
            f"{self.wall_time_ms:.1f}ms"
        )

        if self.error:
            logger.warning(f"Cursor read failed: {self.error}")
