"""Locate spoiler logs and notice when a new one appears.

The randomizer writes one ``.txt`` per generated seed into its
``spoiler_logs`` folder. Without an explicit path the tracker searches a
fixed list of folders relative to where it runs and takes the newest
qualifying file. ``SpoilerLogWatcher.poll()`` is called from the tracker
loop; there is no background thread.
"""

import logging
import re
from pathlib import Path
from typing import Callable

logger = logging.getLogger(__name__)

# Tracker next to, inside, or below the randomizer folder
DEFAULT_SEARCH_DIRS: tuple[str, ...] = (
    'randomizer/spoiler_logs',
    '../randomizer/spoiler_logs',
    'spoiler_logs',
    '../spoiler_logs',
    '../../spoiler_logs',
    '../../../spoiler_logs',
    '.',
    '..',
)

_DATE_RE = re.compile(r'\d{4}-\d{2}-\d{2}')


def is_spoiler_log_name(name: str) -> bool:
    if not name.lower().endswith('.txt'):
        return False
    return 'log' in name.lower() or bool(_DATE_RE.search(name))


def find_most_recent_spoiler_log(directory: str | Path) -> Path | None:
    """Newest ``*.txt`` in ``directory`` that looks like a spoiler log."""
    directory = Path(directory)
    try:
        candidates = [
            p for p in directory.iterdir()
            if p.is_file() and is_spoiler_log_name(p.name)
        ]
        candidates.sort(key=lambda p: p.stat().st_mtime, reverse=True)
    except OSError as e:
        logger.debug('Cannot scan %s for spoiler logs: %s', directory, e)
        return None
    return candidates[0] if candidates else None


def resolve_spoiler_path(
    option: str | None,
    search_dirs: tuple[str, ...] = DEFAULT_SEARCH_DIRS,
    base: str | Path = '.',
) -> tuple[Path | None, Path | None, str | None]:
    """Resolve the ``--spoiler`` option.

    Returns ``(log_file, watch_dir, error)``. ``option`` may be a file or a
    directory; when empty, ``search_dirs`` are tried in order (relative to
    ``base``) and the first one holding a spoiler log wins. If none holds
    one, the first existing spoiler folder (never ``.`` or ``..``) is still
    returned as ``watch_dir`` so a seed generated later gets picked up.
    """
    base = Path(base)
    if option:
        path = Path(option)
        if path.is_file():
            return path, path.parent, None
        if path.is_dir():
            return find_most_recent_spoiler_log(path), path, None
        return None, None, f'Spoiler path not found: {option}'

    # First existing spoiler folder is watched even while still empty
    fallback_dir: Path | None = None
    for rel in search_dirs:
        directory = base / rel
        if not directory.is_dir():
            continue
        found = find_most_recent_spoiler_log(directory)
        if found is not None:
            return found, directory, None
        if fallback_dir is None and rel not in ('.', '..'):
            fallback_dir = directory
    return None, fallback_dir, None


class SpoilerLogWatcher:
    """Polls a directory and reports when a newer spoiler log shows up.

    Subscribers register on ``on_document_changed``; each receives the new
    file's path. The watcher never parses; the caller decides what to do.
    """

    def __init__(self, directory: str | Path, current: str | Path | None = None):
        self.directory = Path(directory)
        self.current: Path | None = Path(current) if current else None
        self._current_mtime: float | None = self._mtime(self.current)
        self.on_document_changed: list[Callable[[Path], None]] = []

    def poll(self) -> Path | None:
        """Check once. Returns (and announces) a new document, else None."""
        newest = find_most_recent_spoiler_log(self.directory)
        if newest is None:
            return None
        mtime = self._mtime(newest)
        if newest == self.current and mtime == self._current_mtime:
            return None
        if (
            newest != self.current
            and self._current_mtime is not None
            and mtime is not None
            and mtime < self._current_mtime
        ):
            return None
        self.current = newest
        self._current_mtime = mtime
        for callback in self.on_document_changed:
            callback(newest)
        return newest

    @staticmethod
    def _mtime(path: Path | None) -> float | None:
        if path is None:
            return None
        try:
            return path.stat().st_mtime
        except OSError:
            return None
