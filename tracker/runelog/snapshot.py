"""Flag snapshots read from the producer's JSON file.

The producer (the splitter plugin attached to the game) rewrites a JSON
file whenever tracked flags change::

    {
      "igt": 754000,
      "timestamp": "2026-01-09T21:30:00Z",
      "timerRunning": true,
      "greatRunes": {"Godrick": true, "Radahn": false, ...},
      "bosses": {"10000850": true, ...},
      "flags": {"181": true, ...}
    }

``greatRunes`` is keyed by collectible key and mapped back to flag ids
here. ``flags`` is a generic FlagId -> bool table (ordinal flags arrive
this way). Flags absent from the payload are absent from the snapshot;
the tracker treats them as unchanged, not as false.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .catalog import Catalog, Collectible, DEFAULT_CATALOG

logger = logging.getLogger(__name__)


@dataclass
class FlagSnapshot:
    """One observation of the game's flags."""
    elapsed_ms: int = 0
    flags: dict[int, bool] = field(default_factory=dict)
    timer_running: bool | None = None


class SnapshotPayload(BaseModel):
    """Wire format of the producer's tracker output file."""
    model_config = ConfigDict(populate_by_name=True, extra='ignore')

    igt: int = Field(default=0, ge=0)
    timestamp: str | None = None
    timer_running: bool | None = Field(default=None, alias='timerRunning')
    great_runes: dict[str, bool] = Field(default_factory=dict, alias='greatRunes')
    bosses: dict[int, bool] = Field(default_factory=dict)
    flags: dict[int, bool] = Field(default_factory=dict)

    def to_snapshot(self, catalog: Catalog = DEFAULT_CATALOG) -> FlagSnapshot:
        flags: dict[int, bool] = dict(self.flags)
        flags.update(self.bosses)
        for key, value in self.great_runes.items():
            rune = catalog.get(key)
            if not isinstance(rune, Collectible):
                continue
            flags[rune.flag] = value
        return FlagSnapshot(elapsed_ms=self.igt, flags=flags,
                            timer_running=self.timer_running)


def parse_snapshot(text: str, catalog: Catalog = DEFAULT_CATALOG) -> FlagSnapshot | None:
    """Decode one payload. Returns None for anything unparseable."""
    try:
        payload = SnapshotPayload.model_validate_json(text)
    except ValidationError as e:
        logger.debug('Ignoring malformed snapshot: %s', e)
        return None
    return payload.to_snapshot(catalog)


class JsonSnapshotSource:
    """Polls the producer's JSON file for new snapshots.

    ``read()`` returns a snapshot only when the file changed since the last
    successful read. Missing files and half-written payloads both read as
    "nothing new"; ``available`` tells the two apart for status reporting.
    """

    def __init__(self, path: str | Path, catalog: Catalog = DEFAULT_CATALOG):
        self.path = Path(path)
        self.catalog = catalog
        self._last_mtime_ns: int | None = None

    @property
    def available(self) -> bool:
        return self.path.is_file()

    def read(self) -> FlagSnapshot | None:
        try:
            mtime_ns = self.path.stat().st_mtime_ns
            if mtime_ns == self._last_mtime_ns:
                return None
            text = self.path.read_text(encoding='utf-8')
        except OSError:
            return None
        except UnicodeDecodeError as e:
            logger.debug('Ignoring undecodable snapshot: %s', e)
            return None

        snapshot = parse_snapshot(text, self.catalog)
        if snapshot is not None:
            self._last_mtime_ns = mtime_ns
        return snapshot

    def reset(self) -> None:
        """Forget the last mtime so the next read returns the current file."""
        self._last_mtime_ns = None
