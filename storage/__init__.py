"""
Persistencia del historial de lecturas de Hydro-Monitor.
"""

from .history_store import HistoryStore, HISTORY_RANGES, InvalidRangeError

__all__ = ["HistoryStore", "HISTORY_RANGES", "InvalidRangeError"]
