"""
Replay an observation log offline and print the changes it contains.

Usage:
    python replay_main.py observations.jsonl
"""

import json
import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

import structlog

from utilities.logger import setup_logging
from watcher.replay import ObservationReplayer


def main():
    if len(sys.argv) != 2:
        print("Usage: python replay_main.py <observation-log>")
        sys.exit(1)

    path = Path(sys.argv[1])
    setup_logging(log_level="INFO", log_format="console")
    logger = structlog.get_logger(__name__)

    if not path.exists():
        logger.error("Observation log not found", path=str(path))
        sys.exit(1)

    replayer = ObservationReplayer()
    for change in replayer.replay(path):
        print(json.dumps(change.model_dump(mode="json", exclude_none=True)))


if __name__ == "__main__":
    main()
