"""Sync engine for resumesync - per-entry skip/create/resume decisions."""

from .comparator import DecisionEngine, SkipReason, SyncAction, SyncDecision
from .engine import CancellationToken, SyncEngine, SyncStats
from .listing import (
    Entry,
    EntryKind,
    ListingFormat,
    decode_hex_size,
    parse_listing,
    parse_structured_line,
)
from .operations import SyncOperations
from .paths import TransferRoot, is_remote_endpoint, map_path, normalize_root
from .probes import LocalProbe, ProbeResult, ProbeStatus, RemoteProbe

__all__ = [
    "SyncEngine",
    "SyncStats",
    "CancellationToken",
    "SyncOperations",
    "DecisionEngine",
    "SyncAction",
    "SyncDecision",
    "SkipReason",
    "Entry",
    "EntryKind",
    "ListingFormat",
    "decode_hex_size",
    "parse_listing",
    "parse_structured_line",
    "TransferRoot",
    "is_remote_endpoint",
    "map_path",
    "normalize_root",
    "LocalProbe",
    "RemoteProbe",
    "ProbeResult",
    "ProbeStatus",
]
