"""
ARM Wallet Bulletin

The network side of a transfer is fire-and-forget: a sender publishes
{ce, eepk, cd, edpk} and every wallet later iterates over what was published.
Nothing here knows who a payload is for.
"""

import json
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterator, List, Union

from ..exceptions import MalformedEncoding
from ..logger import get_logger
from ..transfer import TransferPayload

logger = get_logger(__name__)


# ══════════════════════════════════════════════════════════════════════
#  BROADCAST SINK  (Abstract)
# ══════════════════════════════════════════════════════════════════════

class BroadcastSink(ABC):
    """Anything a sealed transfer can be published to."""

    @abstractmethod
    def publish(self, payload: TransferPayload) -> None:
        """Publish a payload. Must not block on delivery."""
        ...


# ══════════════════════════════════════════════════════════════════════
#  IN-MEMORY BULLETIN
# ══════════════════════════════════════════════════════════════════════

class MemoryBulletin(BroadcastSink):
    """Sink and payload source in one list. Iteration sees a snapshot."""

    def __init__(self):
        self._payloads: List[TransferPayload] = []
        self._lock = threading.Lock()

    def publish(self, payload: TransferPayload) -> None:
        with self._lock:
            self._payloads.append(payload)
        logger.debug(f"Published payload #{len(self._payloads)}")

    def __iter__(self) -> Iterator[TransferPayload]:
        with self._lock:
            snapshot = list(self._payloads)
        return iter(snapshot)

    def __len__(self) -> int:
        return len(self._payloads)


# ══════════════════════════════════════════════════════════════════════
#  JSON-LINES BULLETIN
# ══════════════════════════════════════════════════════════════════════

class JsonlBulletin(BroadcastSink):
    """
    Append-only JSON-lines file, one hex-encoded payload per line.

    Unreadable lines are skipped with a warning when iterating so a single
    corrupt entry does not hide the rest of the board.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path).expanduser()
        self._lock = threading.Lock()

    def publish(self, payload: TransferPayload) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        line = json.dumps(payload.to_dict(), sort_keys=True)
        with self._lock:
            with open(self.path, 'a', encoding='utf-8') as f:
                f.write(line + '\n')
        logger.debug(f"Appended payload to {self.path}")

    def __iter__(self) -> Iterator[TransferPayload]:
        if not self.path.exists():
            return
        with open(self.path, 'r', encoding='utf-8') as f:
            for lineno, line in enumerate(f, 1):
                line = line.strip()
                if not line:
                    continue
                try:
                    yield TransferPayload.from_dict(json.loads(line))
                except (json.JSONDecodeError, MalformedEncoding) as e:
                    logger.warning(f"Skipping bulletin line {lineno}: {e}")
