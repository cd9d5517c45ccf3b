"""Rune Tracker Engine: main entry point.

Polls the splitter's tracker_output.json, detects newly obtained Great
Runes and defeated bosses, labels them from the randomizer spoiler log and
keeps a text log of the run up to date.

Usage:
    python tracker_engine.py
    python tracker_engine.py -s "C:/randomizer/spoiler_logs"
    python tracker_engine.py -s spoiler.txt -o MyRun.txt \
        --server http://localhost:3000 --racer racer1

Args:
    -s, --spoiler: Spoiler log file or directory (default: search nearby)
    -o, --output: Output log path (default: logs/TrackerLog.txt, renamed
        after the seed once a spoiler log is loaded)
    --snapshot: Producer JSON file
    --catalog: JSON catalog override (flag ids, bosses, named checks)
    --interval: Poll interval in seconds
    --server / --racer: Optionally POST each new milestone to a server
"""

import argparse
import os
import sys
import time
from pathlib import Path

import requests

from runelog.catalog import DEFAULT_CATALOG, load_catalog
from runelog.event_log import format_igt
from runelog.milestone_tracker import KIND_BOSS
from runelog.session import TrackerSession
from runelog.snapshot import JsonSnapshotSource
from runelog.spoiler_watcher import SpoilerLogWatcher, resolve_spoiler_path

DEFAULT_SNAPSHOT = os.path.join(
    os.environ.get('LOCALAPPDATA', os.path.expanduser('~')),
    'SoulSplitter', 'tracker_output.json',
)

# Check the spoiler folder every N polls (~2 s at the default interval)
SPOILER_CHECK_POLLS = 20


def log(message: str) -> None:
    print(f'[Tracker] {message}', file=sys.stderr, flush=True)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description='Great Rune / boss tracker for Elden Ring randomizer runs',
        epilog='Without --spoiler, spoiler_logs is searched in ./randomizer, '
               '../randomizer, ., .., ../.. and ../../..',
    )
    parser.add_argument('-s', '--spoiler', default=None,
                        help='Path to spoiler log file or directory')
    parser.add_argument('-o', '--output', default=None,
                        help='Output file path (default: logs/TrackerLog.txt)')
    parser.add_argument('--snapshot', default=DEFAULT_SNAPSHOT,
                        help='Flag snapshot JSON written by the splitter')
    parser.add_argument('--catalog', default=None,
                        help='JSON catalog override for flag ids')
    parser.add_argument('--interval', type=float, default=0.1,
                        help='Poll interval in seconds')
    parser.add_argument('--server', default=None,
                        help='Server URL to push milestones to')
    parser.add_argument('--racer', default='racer1',
                        help='Racer ID (used in API endpoint)')
    return parser.parse_args(argv)


def push_records(api_url: str, records) -> None:
    """POST new milestones; failures are reported and dropped."""
    payload = {
        'milestones': [
            {
                'kind': r.kind,
                'key': r.key,
                'name': r.primary_name,
                'label': r.resolved_label,
                'igt_ms': r.elapsed_ms,
                'sequence': r.sequence,
            }
            for r in records
        ],
    }
    try:
        requests.post(api_url, json=payload, timeout=1)
    except requests.RequestException as e:
        log(f'Push failed: {e}')


def main(argv=None):
    args = parse_args(argv)

    catalog = DEFAULT_CATALOG
    if args.catalog:
        try:
            catalog = load_catalog(args.catalog)
        except (OSError, ValueError) as e:
            log(f'Failed to load catalog {args.catalog}: {e}')
            return 2
        log(f'Catalog: {len(catalog.collectibles)} runes, {len(catalog.bosses)} bosses '
            f'from {args.catalog}')

    source = JsonSnapshotSource(args.snapshot, catalog)
    session = TrackerSession(source, catalog, output_path=args.output)
    api_url = f'{args.server}/api/tracker/{args.racer}' if args.server else None

    # ── Spoiler log ──
    spoiler_file, watch_dir, error = resolve_spoiler_path(args.spoiler)
    if error:
        log(f'ERROR: {error}')

    def load(path: Path) -> None:
        log(f'Loading spoiler log: {path.name}')
        index = session.load_spoiler(path)
        if not index.is_valid:
            log(f'ERROR: Failed to read spoiler log: {index.parse_error}')
            return
        if index.seed:
            log(f'Seed: {index.seed}')
        log('Spoiler log loaded (locations hidden for racing!)')
        log(f'Output file: {session.output_path}')

    if spoiler_file is not None:
        load(spoiler_file)
    elif not error:
        log('WARNING: No spoiler log found. Locations will show as "Unknown location"')
        log('         Use --spoiler <path> to specify the spoiler log location')

    watcher = None
    if watch_dir is not None:
        watcher = SpoilerLogWatcher(watch_dir, current=spoiler_file)
        watcher.on_document_changed.append(load)

    session.flush()
    log(f'Waiting for snapshots in {args.snapshot}')

    poll_count = 0

    # ── Main loop ──
    try:
        while True:
            result = session.poll()
            poll_count += 1

            if result.status_changed:
                if result.connected:
                    log('Connected: snapshot file found, tracking started')
                else:
                    log('Disconnected: snapshot file missing, waiting for reconnection...')
            if result.run_restarted:
                log('New run detected (IGT went backwards), log cleared')

            for record in result.records:
                verb = 'DEFEATED' if record.kind == KIND_BOSS else 'OBTAINED'
                log(f'[{format_igt(record.elapsed_ms)}] {verb}: {record.primary_name}')
                log(f'           {record.resolved_label}')
            if result.records:
                log(f'Progress: {session.log.collectible_count}/{len(catalog.collectibles)} '
                    f'{catalog.collectible_label}, '
                    f'{session.log.boss_count}/{len(catalog.bosses)} {catalog.boss_label}')
                if api_url:
                    push_records(api_url, result.records)

            if watcher is not None and poll_count % SPOILER_CHECK_POLLS == 0:
                watcher.poll()

            time.sleep(args.interval)
    except KeyboardInterrupt:
        log('Stopped')
    return 0


if __name__ == '__main__':
    sys.exit(main())
