"""
In-memory store of the latest snapshot per watched date.
"""

from typing import Dict, Iterable, List, Optional

from watcher.models import DateSnapshot

class SnapshotStore:
    """Latest DateSnapshot per calendar date, replaced wholesale each cycle."""

    def __init__(self):
        self._snapshots: Dict[str, DateSnapshot] = {}

    def get(self, date: str) -> Optional[DateSnapshot]:
        return self._snapshots.get(date)

    def replace(self, snapshots: Iterable[DateSnapshot]) -> List[str]:
        """
        Swap in a fresh map built from this cycle's snapshots.

        Args:
            snapshots: Snapshots to keep, one per date

        Returns:
            Dates held before the swap that are absent from the new map
        """
        fresh = {snapshot.date: snapshot for snapshot in snapshots}
        dropped = sorted(set(self._snapshots) - set(fresh))
        self._snapshots = fresh
        return dropped

    def __len__(self) -> int:
        return len(self._snapshots)
