"""Unit tests for snapshot decoding and the JSON file source."""
import json
import os
import sys
from pathlib import Path

TRACKER_DIR = Path(__file__).parent.parent
sys.path.insert(0, str(TRACKER_DIR))

from runelog.snapshot import JsonSnapshotSource, SnapshotPayload, parse_snapshot

PAYLOAD = {
    'igt': 754000,
    'timestamp': '2026-01-09T21:30:00Z',
    'timerRunning': True,
    'greatRunes': {'Godrick': True, 'Radahn': False, 'Unborn': False},
    'bosses': {'10000850': True, '10000800': False},
    'flags': {'181': True},
}


def _write(path: Path, payload, mtime_ns: int | None = None) -> None:
    path.write_text(json.dumps(payload), encoding='utf-8')
    if mtime_ns is not None:
        os.utime(path, ns=(mtime_ns, mtime_ns))


class TestParseSnapshot:

    def test_producer_format(self):
        snap = parse_snapshot(json.dumps(PAYLOAD))
        assert snap.elapsed_ms == 754000
        assert snap.timer_running is True
        assert snap.flags[171] is True
        assert snap.flags[172] is False
        assert snap.flags[197] is False
        assert snap.flags[10000850] is True
        assert snap.flags[10000800] is False
        assert snap.flags[181] is True

    def test_absent_flags_stay_absent(self):
        snap = parse_snapshot(json.dumps({'igt': 1, 'greatRunes': {'Godrick': True}}))
        assert snap.flags == {171: True}

    def test_unknown_rune_keys_ignored(self):
        snap = parse_snapshot(json.dumps({'greatRunes': {'Miquella': True, 'margit': True}}))
        assert snap.flags == {}

    def test_extra_fields_ignored(self):
        snap = parse_snapshot(json.dumps({'igt': 5, 'version': 3}))
        assert snap.elapsed_ms == 5

    def test_malformed_json(self):
        assert parse_snapshot('{"igt": 12') is None

    def test_negative_igt_rejected(self):
        assert parse_snapshot(json.dumps({'igt': -1})) is None

    def test_wrong_types_rejected(self):
        assert parse_snapshot(json.dumps({'bosses': {'abc': True}})) is None

    def test_field_names_accepted(self):
        payload = SnapshotPayload(igt=3, great_runes={'Mohg': True}, timer_running=False)
        snap = payload.to_snapshot()
        assert snap.flags == {175: True}
        assert snap.timer_running is False


class TestJsonSnapshotSource:

    def test_missing_file(self, tmp_path):
        source = JsonSnapshotSource(tmp_path / 'tracker_output.json')
        assert not source.available
        assert source.read() is None

    def test_reads_once_per_change(self, tmp_path):
        path = tmp_path / 'tracker_output.json'
        _write(path, PAYLOAD, 1_000_000_000)
        source = JsonSnapshotSource(path)
        assert source.available
        assert source.read().elapsed_ms == 754000
        assert source.read() is None

        _write(path, dict(PAYLOAD, igt=800000), 2_000_000_000)
        assert source.read().elapsed_ms == 800000

    def test_half_written_file_retried(self, tmp_path):
        path = tmp_path / 'tracker_output.json'
        path.write_text('{"igt": ', encoding='utf-8')
        os.utime(path, ns=(1_000_000_000, 1_000_000_000))
        source = JsonSnapshotSource(path)
        assert source.read() is None

        # Same mtime, now complete: a failed parse does not consume the mtime
        _write(path, PAYLOAD, 1_000_000_000)
        assert source.read() is not None

    def test_reset_rereads(self, tmp_path):
        path = tmp_path / 'tracker_output.json'
        _write(path, PAYLOAD, 1_000_000_000)
        source = JsonSnapshotSource(path)
        source.read()
        source.reset()
        assert source.read() is not None

    def test_undecodable_bytes_are_no_snapshot(self, tmp_path):
        path = tmp_path / 'tracker_output.json'
        path.write_bytes(b'{"igt": 5, "greatRunes": {"Godrick": tr\xff\xfe')
        os.utime(path, ns=(1_000_000_000, 1_000_000_000))
        source = JsonSnapshotSource(path)
        assert source.read() is None

        # The next good write is still picked up
        _write(path, PAYLOAD, 2_000_000_000)
        assert source.read().elapsed_ms == 754000
