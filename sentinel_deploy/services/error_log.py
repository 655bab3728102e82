"""Append-only local log of full error bodies from failed submissions."""

import asyncio
import datetime
import logging
from pathlib import Path

logger = logging.getLogger(__name__)


class ErrorLog:
    """Appends one block per failure; concurrent writers take turns on a lock."""

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self._lock = asyncio.Lock()

    async def append(self, item: str, body: str, status_code: int | None = None) -> bool:
        """Write one entry; an unwritable log is reported and never raised."""
        timestamp = datetime.datetime.now(datetime.timezone.utc).isoformat()
        entry = (
            f"=== {timestamp} {item} (HTTP {status_code if status_code is not None else 'n/a'})\n"
            f"{body}\n"
        )
        # Blocking write on the loop; entries are small and only written on failure.
        async with self._lock:
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                with open(self.path, "a", encoding="utf-8") as f:
                    f.write(entry)
            except OSError as e:
                logger.warning("Could not write error log %s for %s: %s", self.path, item, e)
                return False
        return True
