"""
Score history - keeps the best finished runs in a small JSON file.

The history listens for GAME_OVER on the event bus, so the simulation
never has to know it exists.
"""

from dataclasses import dataclass, asdict
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional
import json
import logging

from dodgeball.core.events import Event, EventBus, EventType

logger = logging.getLogger(__name__)


@dataclass
class ScoreEntry:
    score: int
    difficulty: str
    timestamp: str


class ScoreHistory:
    """Persistent top-N list of final scores, highest first."""

    def __init__(self, path: Path | str, limit: int = 20) -> None:
        self.path = Path(path)
        self.limit = max(1, limit)
        self._entries: List[ScoreEntry] = []
        self._unsubscribe: Optional[Callable[[], None]] = None
        self.load()

    @property
    def entries(self) -> List[ScoreEntry]:
        return list(self._entries)

    @property
    def high_score(self) -> int:
        return self._entries[0].score if self._entries else 0

    def best_for(self, difficulty: str) -> int:
        scores = [e.score for e in self._entries if e.difficulty == difficulty]
        return max(scores, default=0)

    def load(self) -> None:
        """Read entries from disk. A missing or unreadable file starts empty."""
        if not self.path.exists():
            self._entries = []
            return
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
            self._entries = [
                ScoreEntry(int(item["score"]), str(item["difficulty"]), str(item["timestamp"]))
                for item in raw.get("scores", [])
            ]
            self._sort()
            logger.info(f"Loaded {len(self._entries)} scores from {self.path}")
        except (OSError, ValueError, KeyError, TypeError, AttributeError) as e:
            logger.warning(f"Could not read score history {self.path}: {e}")
            self._entries = []

    def save(self) -> bool:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            payload = {"scores": [asdict(e) for e in self._entries]}
            self.path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
            return True
        except OSError as e:
            logger.error(f"Could not write score history {self.path}: {e}")
            return False

    def record(self, score: int, difficulty: str) -> bool:
        """Add a finished run. Returns True if it is a new high score."""
        is_best = score > self.high_score
        self._entries.append(ScoreEntry(
            score=score,
            difficulty=difficulty,
            timestamp=datetime.now().isoformat(timespec="seconds"),
        ))
        self._sort()
        self.save()
        if is_best:
            logger.info(f"New high score: {score}")
        return is_best

    def attach(self, event_bus: EventBus) -> None:
        self.detach()
        self._unsubscribe = event_bus.subscribe(EventType.GAME_OVER, self._on_game_over)

    def detach(self) -> None:
        if self._unsubscribe:
            self._unsubscribe()
            self._unsubscribe = None

    def _on_game_over(self, event: Event) -> None:
        score = event.data.get("score")
        if score is None:
            return
        self.record(int(score), str(event.data.get("difficulty", "medium")))

    def _sort(self) -> None:
        self._entries.sort(key=lambda e: e.score, reverse=True)
        del self._entries[self.limit:]
