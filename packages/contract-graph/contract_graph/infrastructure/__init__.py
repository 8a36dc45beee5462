"""
Infrastructure Layer - Contract Graph

Extractor, snapshot/store, cycle detection, result cache, publication log.
"""

from .cycle_detector import detect_cycle
from .extractor import extract, interface_hash, parse_interface
from .graph_store import GraphStore
from .publication_log import PublicationLog
from .result_cache import CacheEntry, CacheKey, ResultCache
from .snapshot import GraphSnapshot

__all__ = [
    "CacheEntry",
    "CacheKey",
    "GraphSnapshot",
    "GraphStore",
    "PublicationLog",
    "ResultCache",
    "detect_cycle",
    "extract",
    "interface_hash",
    "parse_interface",
]
