"""Append-only milestone log and its text rendering.

Every change rebuilds the whole text file from memory (written to a temp
file and swapped in), so a crash or failed write never leaves a partial
log behind and the next successful write recovers everything.

Rendered layout::

    === RUN TRACKER ===
    Generated: 2026-01-09 21:30:00
    Seed: 2005756270

    --- Milestones ---

    1. DEFEATED: Margit, the Fell Omen
       Replaced by: Mohg, the Omen
       IGT: 00:12:34

    2. OBTAINED: Godrick's Great Rune
       Location: Royal Knight Loretta
       IGT: 00:41:02

    --- Progress: 1/7 Great Runes, 1/24 Bosses ---
"""

import logging
import os
import re
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from .catalog import Catalog, DEFAULT_CATALOG
from .milestone_tracker import KIND_BOSS, KIND_COLLECTIBLE

logger = logging.getLogger(__name__)

HEADER = '=== RUN TRACKER ==='
DEFAULT_OUTPUT = Path('logs') / 'TrackerLog.txt'

_VERBS = {KIND_COLLECTIBLE: 'OBTAINED', KIND_BOSS: 'DEFEATED'}
_LABEL_PREFIXES = {KIND_COLLECTIBLE: 'Location', KIND_BOSS: 'Replaced by'}

_PROGRESS_RE = re.compile(
    r'^--- Progress: (\d+)/(\d+) (.+?), (\d+)/(\d+) (.+?) ---$', re.MULTILINE)


@dataclass(frozen=True)
class EventRecord:
    kind: str
    key: str
    primary_name: str
    resolved_label: str
    elapsed_ms: int
    sequence: int


def format_igt(milliseconds: int) -> str:
    """Milliseconds -> ``HH:MM:SS`` (hours keep counting past 24)."""
    total_seconds = max(0, int(milliseconds)) // 1000
    hours, rem = divmod(total_seconds, 3600)
    minutes, seconds = divmod(rem, 60)
    return f'{hours:02d}:{minutes:02d}:{seconds:02d}'


def parse_progress(text: str) -> tuple[int, int] | None:
    """Recover (runes obtained, bosses defeated) from rendered text."""
    m = _PROGRESS_RE.search(text)
    if not m:
        return None
    return int(m.group(1)), int(m.group(4))


def output_path_for_seed(seed: str | None, directory: str | Path = 'logs',
                         when: datetime | None = None) -> Path:
    """``logs/<date>_<seed>_TrackerLog.txt``, or the default without a seed."""
    if not seed:
        return Path(directory) / DEFAULT_OUTPUT.name
    date_str = (when or datetime.now()).strftime('%Y-%m-%d')
    return Path(directory) / f'{date_str}_{seed}_TrackerLog.txt'


class EventLog:
    """Ordered, append-only list of EventRecords."""

    def __init__(self, catalog: Catalog = DEFAULT_CATALOG):
        self.catalog = catalog
        self._records: list[EventRecord] = []
        self._keys: set[str] = set()
        # True until the current contents have been written successfully
        self.dirty: bool = True

    def __len__(self) -> int:
        return len(self._records)

    @property
    def records(self) -> tuple[EventRecord, ...]:
        return tuple(self._records)

    @property
    def collectible_count(self) -> int:
        return sum(1 for r in self._records if r.kind == KIND_COLLECTIBLE)

    @property
    def boss_count(self) -> int:
        return sum(1 for r in self._records if r.kind == KIND_BOSS)

    def append(self, kind: str, key: str, primary_name: str,
               resolved_label: str, elapsed_ms: int) -> EventRecord | None:
        """Add one record. Returns None if ``key`` is already logged."""
        if key in self._keys:
            return None
        record = EventRecord(
            kind=kind,
            key=key,
            primary_name=primary_name,
            resolved_label=resolved_label,
            elapsed_ms=elapsed_ms,
            sequence=len(self._records) + 1,
        )
        self._records.append(record)
        self._keys.add(key)
        self.dirty = True
        return record

    def clear(self) -> None:
        self._records.clear()
        self._keys.clear()
        self.dirty = True

    def render(self, seed: str | None = None, generated: datetime | None = None) -> str:
        lines = [HEADER]
        if generated is not None:
            lines.append(f'Generated: {generated:%Y-%m-%d %H:%M:%S}')
        if seed:
            lines.append(f'Seed: {seed}')
        lines.append('')

        if not self._records:
            lines.append('No milestones reached yet.')
            lines.append('')
        else:
            lines.append('--- Milestones ---')
            lines.append('')
            for record in self._records:
                lines.append(f'{record.sequence}. {_VERBS[record.kind]}: {record.primary_name}')
                lines.append(f'   {_LABEL_PREFIXES[record.kind]}: {record.resolved_label}')
                lines.append(f'   IGT: {format_igt(record.elapsed_ms)}')
                lines.append('')

        lines.append(
            f'--- Progress: '
            f'{self.collectible_count}/{len(self.catalog.collectibles)} '
            f'{self.catalog.collectible_label}, '
            f'{self.boss_count}/{len(self.catalog.bosses)} '
            f'{self.catalog.boss_label} ---'
        )
        return '\n'.join(lines) + '\n'

    def write(self, path: str | Path, seed: str | None = None,
              generated: datetime | None = None) -> bool:
        """Rewrite ``path`` from scratch. Returns False (and logs) on failure."""
        path = Path(path)
        text = self.render(seed=seed, generated=generated)
        # Stale .tmp files from a failed write are overwritten next time
        tmp_path = path.with_name(f'.{path.name}.tmp')
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(text, encoding='utf-8')
            os.replace(tmp_path, path)
        except OSError as e:
            logger.warning('Failed to write tracker log %s: %s', path, e)
            return False
        self.dirty = False
        return True
