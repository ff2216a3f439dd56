"""
Snapshot fingerprinting for change detection.

This module provides:
- Order-independent fingerprints of one date's slot hash set
- A compact fingerprint of the whole watched horizon
- Short SHA-256 digests of those fingerprints for logging
"""

import hashlib
from typing import Iterable

import structlog

from watcher.models import DateSnapshot

logger = structlog.get_logger(__name__)


class SnapshotFingerprinter:
    """Fingerprints for date snapshots and whole cycles."""

    def __init__(self, digest_length: int = 16):
        """
        Initialize the fingerprinter.

        Args:
            digest_length: Number of hex characters kept from the SHA-256 digest
        """
        self.digest_length = digest_length
        self.logger = logger.bind(component="fingerprinter")

    def snapshot_fingerprint(self, snapshot: DateSnapshot) -> str:
        """
        Fingerprint one date: "YYYY-MM-DD:count:hash1,hash2,..." with hashes sorted,
        or "YYYY-MM-DD:0" when the date has no slots.
        """
        if snapshot.slot_count == 0:
            return f"{snapshot.date}:0"
        hashes = ",".join(sorted(snapshot.hash_set))
        return f"{snapshot.date}:{snapshot.slot_count}:{hashes}"

    def horizon_fingerprint(self, snapshots: Iterable[DateSnapshot]) -> str:
        """Fingerprint a set of snapshots, sorted by date and joined with '|'."""
        ordered = sorted(snapshots, key=lambda s: s.date)
        return "|".join(self.snapshot_fingerprint(s) for s in ordered)

    def digest(self, fingerprint: str) -> str:
        """Short SHA-256 hex digest of a fingerprint string."""
        return hashlib.sha256(fingerprint.encode('utf-8')).hexdigest()[:self.digest_length]

    def horizon_digest(self, snapshots: Iterable[DateSnapshot]) -> str:
        fingerprint_hash = self.digest(self.horizon_fingerprint(snapshots))
        self.logger.debug("Generated horizon fingerprint", hash=fingerprint_hash)
        return fingerprint_hash

    def same_slots(self, old: DateSnapshot, new: DateSnapshot) -> bool:
        """True when both snapshots carry exactly the same slot hashes, in any order."""
        return old.hash_set == new.hash_set
