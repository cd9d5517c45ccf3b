"""One tracker run: snapshot -> milestones -> labels -> log file.

``TrackerSession.poll()`` is a single step of the polling loop. Polls
must not overlap: the tracker state is not safe for concurrent use.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable

from .catalog import Catalog, DEFAULT_CATALOG
from .event_log import EventLog, EventRecord, output_path_for_seed
from .milestone_tracker import KIND_BOSS, MilestoneTracker, boss_label
from .spoiler_parser import SpoilerIndex, parse_spoiler_log

logger = logging.getLogger(__name__)


@dataclass
class PollResult:
    records: list[EventRecord]
    connected: bool
    status_changed: bool = False
    run_restarted: bool = False


class TrackerSession:
    """Owns the tracker, the event log and the current spoiler index.

    Args:
        source: Object with ``read() -> FlagSnapshot | None`` and an
            ``available`` attribute.
        output_path: Fixed output file. When None the file name follows
            the spoiler seed (``logs/<date>_<seed>_TrackerLog.txt``).
        clock: Returns "now" for the Generated line and the date in the
            seeded file name; tests pin it.
    """

    def __init__(
        self,
        source,
        catalog: Catalog = DEFAULT_CATALOG,
        output_path: str | Path | None = None,
        output_dir: str | Path = 'logs',
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.source = source
        self.catalog = catalog
        self.tracker = MilestoneTracker(catalog)
        self.log = EventLog(catalog)
        self.spoilers = SpoilerIndex()
        self.clock = clock
        self._fixed_output = Path(output_path) if output_path else None
        self._output_dir = Path(output_dir)
        self.connected = False
        self._last_elapsed_ms: int | None = None
        self._output_date: datetime | None = None

    # ------------------------------------------------------------------
    # Spoiler documents
    # ------------------------------------------------------------------

    @property
    def output_path(self) -> Path:
        if self._fixed_output is not None:
            return self._fixed_output
        return output_path_for_seed(self.spoilers.seed, self._output_dir, self._output_date)

    def load_spoiler(self, path: str | Path) -> SpoilerIndex:
        """Parse ``path`` and swap it in if valid. Returns the parsed index."""
        index = parse_spoiler_log(path, self.catalog)
        if index.is_valid:
            # Swap the whole index; a poll never sees a half-built one
            self.spoilers = index
            # Date in the output name is fixed per loaded seed, not per flush
            self._output_date = self.clock()
            self.log.dirty = True
            self.flush()
        return index

    # ------------------------------------------------------------------
    # Polling
    # ------------------------------------------------------------------

    def poll(self) -> PollResult:
        was_connected = self.connected
        self.connected = bool(self.source.available)
        status_changed = self.connected != was_connected

        if not self.connected:
            if was_connected:
                # Re-seed on reconnect so the catch-up snapshot fires nothing
                self.tracker.reseed()
            return PollResult([], False, status_changed)

        snapshot = self.source.read()
        if snapshot is None:
            if self.log.dirty:
                self.flush()
            return PollResult([], True, status_changed)

        run_restarted = False
        if self._last_elapsed_ms is not None and snapshot.elapsed_ms < self._last_elapsed_ms:
            # IGT went backwards: the producer started a new run
            self.reset()
            run_restarted = True
        self._last_elapsed_ms = snapshot.elapsed_ms

        records: list[EventRecord] = []
        for event in self.tracker.process_snapshot(snapshot):
            milestone = event.milestone
            if event.kind == KIND_BOSS:
                label = boss_label(milestone, self.spoilers.replacements)
            else:
                label = self.spoilers.get_location(milestone.key)
            record = self.log.append(event.kind, milestone.key, milestone.name,
                                     label, event.elapsed_ms)
            if record is not None:
                records.append(record)

        if self.log.dirty:
            self.flush()
        return PollResult(records, True, status_changed, run_restarted)

    def flush(self) -> bool:
        """Rewrite the output file from the full log."""
        return self.log.write(self.output_path, seed=self.spoilers.seed,
                              generated=self.clock())

    def reset(self) -> None:
        """Start a new run: clear tracker state and the event log."""
        self.tracker.reset()
        self.log.clear()
        self._last_elapsed_ms = None
        logger.info('Tracker reset')
