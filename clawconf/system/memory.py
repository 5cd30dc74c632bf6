"""Physical memory detection for hardware-aware model choices."""

import logging
from dataclasses import dataclass

import psutil

logger = logging.getLogger(__name__)

UNITS = ["B", "KB", "MB", "GB", "TB", "PB"]


def format_human(size_bytes: int) -> str:
    """
    Format a byte count using binary prefixes.

    Uses the largest unit in which the value is at least 1, e.g. "16.0 GB".
    Plain bytes are shown without a decimal.
    """
    if size_bytes < 1024:
        return f"{max(0, int(size_bytes))} B"

    value = size_bytes / 1024
    for unit in UNITS[1:-1]:
        if value < 1024:
            return f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} {UNITS[-1]}"


@dataclass(frozen=True)
class MemorySnapshot:
    """Total and available physical memory at one point in time."""

    total_bytes: int
    available_bytes: int

    @property
    def total_human(self) -> str:
        return format_human(self.total_bytes)

    @property
    def available_human(self) -> str:
        return format_human(self.available_bytes)

    def to_dict(self) -> dict[str, int | str]:
        return {
            "total_bytes": self.total_bytes,
            "available_bytes": self.available_bytes,
            "total_human": self.total_human,
            "available_human": self.available_human,
        }

    def __str__(self) -> str:
        return f"Memory: {self.available_human} available / {self.total_human} total"


class MemoryDetector:
    """Reads physical memory figures from the host OS."""

    def snapshot(self) -> MemorySnapshot:
        """Take a memory snapshot; available never exceeds total."""
        vm = psutil.virtual_memory()
        total = int(vm.total)
        available = min(int(vm.available), total)
        logger.debug(f"Memory: total={total} available={available}")
        return MemorySnapshot(total_bytes=total, available_bytes=available)
