"""Milestone tracker: turns flag snapshots into one-shot milestone events.

Diffs each snapshot against the previous one and reports flags that went
false -> true. Rules:

- The first snapshot after start/reset/reconnect only seeds state. Runes
  and bosses already done in the save never fire.
- Bosses are checked before runes on every poll.
- Multi-phase bosses fire once, on the final phase flag. Earlier phase
  flags are only kept for labelling.
- The Unborn rune's own flag is unreliable in the randomizer. It counts as
  obtained when its flag is set OR when more ordinal flags ("got Nth Great
  Rune") are set than specific rune flags. Both counts only grow and
  Unborn is the only rune without a reliable flag, so the surplus is
  Unborn.
- A milestone fires at most once per run, however its flag flickers.
"""

from dataclasses import dataclass, field

from .catalog import Boss, Catalog, Collectible, DEFAULT_CATALOG

UNKNOWN_BOSS = 'Unknown'

KIND_COLLECTIBLE = 'collectible'
KIND_BOSS = 'boss'


@dataclass
class TrackingState:
    """Per-run tracker state. Owned by one MilestoneTracker."""
    previous_flags: dict[int, bool] = field(default_factory=dict)
    obtained: dict[str, bool] = field(default_factory=dict)
    defeated: dict[str, bool] = field(default_factory=dict)
    preexisting: set[str] = field(default_factory=set)
    initialized: bool = False

    def clear(self) -> None:
        self.previous_flags.clear()
        self.obtained.clear()
        self.defeated.clear()
        self.preexisting.clear()
        self.initialized = False


@dataclass(frozen=True)
class MilestoneEvent:
    kind: str                    # KIND_COLLECTIBLE or KIND_BOSS
    milestone: Collectible | Boss
    elapsed_ms: int


class MilestoneTracker:
    """Flag-diffing state machine over a milestone catalog.

    Usage::

        tracker = MilestoneTracker()
        for snapshot in snapshots:
            for event in tracker.process_snapshot(snapshot):
                ...
    """

    def __init__(self, catalog: Catalog = DEFAULT_CATALOG):
        self.catalog = catalog
        self.state = TrackingState()
        self._flags = catalog.tracked_flags()

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    def process_snapshot(self, snapshot) -> list[MilestoneEvent]:
        """Diff one snapshot. Returns newly fired events, bosses first.

        ``snapshot`` needs ``elapsed_ms`` and ``flags`` (FlagId -> bool).
        None is accepted and means "no new snapshot".
        """
        if snapshot is None:
            return []

        state = self.state
        # Flags missing from the snapshot keep their previous value
        current = {
            flag: bool(snapshot.flags.get(flag, state.previous_flags.get(flag, False)))
            for flag in self._flags
        }

        if not state.initialized:
            self._seed(current)
            return []

        previous = state.previous_flags
        events: list[MilestoneEvent] = []

        # ─── Bosses ───
        for boss in self.catalog.bosses:
            if self._rising(boss.final_flag, current, previous) and not self._seen(boss.key):
                state.defeated[boss.key] = True
                events.append(MilestoneEvent(KIND_BOSS, boss, snapshot.elapsed_ms))

        # ─── Runes with a reliable flag ───
        for rune in self.catalog.specific_collectibles:
            if self._rising(rune.flag, current, previous) and not self._seen(rune.key):
                state.obtained[rune.key] = True
                events.append(MilestoneEvent(KIND_COLLECTIBLE, rune, snapshot.elapsed_ms))

        # ─── Deduced runes ───
        for rune in self.catalog.deduced_collectibles:
            now = self._deduce(rune, current)
            before = self._deduce(rune, previous)
            if now and not before and not self._seen(rune.key):
                state.obtained[rune.key] = True
                events.append(MilestoneEvent(KIND_COLLECTIBLE, rune, snapshot.elapsed_ms))

        state.previous_flags = current
        return events

    def is_obtained(self, key: str) -> bool:
        return self.state.obtained.get(key, False)

    def is_defeated(self, key: str) -> bool:
        return self.state.defeated.get(key, False)

    def ordinal_count(self, flags: dict[int, bool] | None = None) -> int:
        flags = self.state.previous_flags if flags is None else flags
        return sum(1 for f in self.catalog.ordinal_flags if flags.get(f, False))

    def reset(self) -> None:
        """New run: forget everything and seed again on the next snapshot."""
        self.state.clear()

    def reseed(self) -> None:
        """Source reconnected: keep what was reported, seed flags again."""
        self.state.previous_flags.clear()
        self.state.initialized = False

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _seed(self, current: dict[int, bool]) -> None:
        state = self.state
        state.previous_flags = current
        state.initialized = True
        for boss in self.catalog.bosses:
            if current[boss.final_flag]:
                state.preexisting.add(boss.key)
        for rune in self.catalog.specific_collectibles:
            if current[rune.flag]:
                state.preexisting.add(rune.key)
        for rune in self.catalog.deduced_collectibles:
            if self._deduce(rune, current):
                state.preexisting.add(rune.key)

    def _seen(self, key: str) -> bool:
        state = self.state
        return (
            key in state.preexisting
            or state.obtained.get(key, False)
            or state.defeated.get(key, False)
        )

    @staticmethod
    def _rising(flag: int, current: dict[int, bool], previous: dict[int, bool]) -> bool:
        return current.get(flag, False) and not previous.get(flag, False)

    def _deduce(self, rune: Collectible, flags: dict[int, bool]) -> bool:
        if flags.get(rune.flag, False):
            return True
        specific_count = sum(
            1 for c in self.catalog.specific_collectibles if flags.get(c.flag, False)
        )
        return self.ordinal_count(flags) > specific_count


def boss_label(boss: Boss, replacements: dict[int, str]) -> str:
    """Spoiler label for a defeated boss.

    Single phase: the replacement occupying the boss's slot. Multi-phase:
    ``"<p1> (Phase 1) <p2> (Phase 2)"``, with ``Unknown`` for any phase the
    spoiler log does not cover.
    """
    if not boss.is_multi_phase:
        return replacements.get(boss.final_flag) or UNKNOWN_BOSS
    parts = [
        f'{replacements.get(flag) or UNKNOWN_BOSS} (Phase {i})'
        for i, flag in enumerate(boss.phase_flags, start=1)
    ]
    return ' '.join(parts)
