"""Storage adapters."""

from persistx.adapters.memory import MemoryAdapter

__all__ = ["MemoryAdapter"]
