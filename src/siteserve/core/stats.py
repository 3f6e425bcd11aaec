"""Process memory statistics for the diagnostic endpoint."""

import os
import resource
import sys
import tracemalloc
from dataclasses import dataclass
from pathlib import Path

RUNTIME = "python/aiohttp"

_STATM = Path("/proc/self/statm")


@dataclass(frozen=True)
class MemoryStats:
    """Memory figures in bytes."""

    rss: int
    heap_used: int
    heap_total: int

    def to_dict(self) -> dict[str, str]:
        """Convert to dictionary for JSON serialization."""
        return {
            "rss": format_mb(self.rss),
            "heap_used": format_mb(self.heap_used),
            "heap_total": format_mb(self.heap_total),
        }


def format_mb(num_bytes: int) -> str:
    """Format a byte count as megabytes with two decimals (e.g., "1.50 MB")."""
    return f"{num_bytes / (1024 * 1024):.2f} MB"


class MemoryProbe:
    """Reads memory usage of the current process on demand.

    Resident set size comes from /proc when available and from
    getrusage() peak RSS otherwise. Heap figures come from tracemalloc
    when tracing is active; without it the RSS figure stands in.
    """

    runtime = RUNTIME

    def collect(self) -> MemoryStats:
        """Take a memory snapshot."""
        rss = self._rss_bytes()
        heap_used, heap_total = self._heap_bytes(rss)
        return MemoryStats(
            rss=rss,
            heap_used=heap_used,
            heap_total=max(heap_total, heap_used),
        )

    def report(self) -> dict[str, object]:
        """Build the /stats response document."""
        return {"runtime": self.runtime, "memory": self.collect().to_dict()}

    def _rss_bytes(self) -> int:
        rss = _statm_rss_bytes()
        if rss is not None:
            return rss
        return _peak_rss_bytes()

    def _heap_bytes(self, rss: int) -> tuple[int, int]:
        if tracemalloc.is_tracing():
            current, peak = tracemalloc.get_traced_memory()
            return current, peak
        return rss, rss


def _statm_rss_bytes() -> int | None:
    try:
        fields = _STATM.read_text().split()
        resident_pages = int(fields[1])
    except (OSError, IndexError, ValueError):
        return None
    return resident_pages * os.sysconf("SC_PAGE_SIZE")


def _peak_rss_bytes() -> int:
    max_rss = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss
    # macOS reports bytes, Linux and BSD report kilobytes
    if sys.platform == "darwin":
        return max_rss
    return max_rss * 1024
