import json
import tempfile
import unittest
from pathlib import Path

from harness.ledger import JsonLedgerStore, MemoryLedgerStore
from harness.outcome import ComparisonRecord, Outcome, ScreenshotPair
from harness.recorder import NO_DIFFERENCES, DifferenceRecorder


def mismatch(scenario_id: str = "W1-write-tmp", screenshots=None) -> ComparisonRecord:
    return ComparisonRecord(
        scenario_id=scenario_id,
        baseline=Outcome(succeeded=True, response_text="Created", observed_at="2026-01-01T10:00:00"),
        candidate=Outcome(
            succeeded=False,
            response_text="Error: cannot write file",
            error_message="cannot write file",
            observed_at="2026-01-01T10:00:01",
        ),
        identical=False,
        mismatch_reasons=[
            "SUCCESS MISMATCH: Old=true, Spicy=false",
            "ERROR IN SPICY CLAUDE ONLY: cannot write file",
        ],
        observed_at="2026-01-01T10:00:00",
        screenshots=screenshots,
    )


class BrokenStore:
    def __init__(self, *, load_error=None, save_error=None) -> None:
        self.load_error = load_error
        self.save_error = save_error

    def load(self):
        if self.load_error:
            raise self.load_error
        return []

    def save(self, records):
        raise self.save_error


class RecorderTests(unittest.TestCase):
    def test_identical_record_is_not_written(self) -> None:
        store = MemoryLedgerStore()
        recorder = DifferenceRecorder(store, verbose=False)
        record = ComparisonRecord("same", Outcome(True), Outcome(True), True, [])
        self.assertFalse(recorder.record_if_mismatched(record))
        self.assertEqual(store.saves, 0)

    def test_json_ledger_round_trip(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            store = JsonLedgerStore(Path(tmp) / "reports" / "differences.json")
            recorder = DifferenceRecorder(store, verbose=False)
            record = mismatch(screenshots=ScreenshotPair(b"a", b"b"))

            self.assertTrue(recorder.record_if_mismatched(record))
            loaded = store.load()
            raw = json.loads(store.path.read_text(encoding="utf-8"))

        self.assertEqual(len(loaded), 1)
        self.assertEqual(loaded[0], record.without_screenshots())
        self.assertIsInstance(raw, list)
        self.assertNotIn("screenshots", raw[0])
        self.assertNotIn("error_message", raw[0]["baseline"])

    def test_ledger_appends_across_recorders(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "differences.json"
            DifferenceRecorder(JsonLedgerStore(path), verbose=False).record_if_mismatched(mismatch("W1"))
            DifferenceRecorder(JsonLedgerStore(path), verbose=False).record_if_mismatched(mismatch("B2"))
            ids = [r.scenario_id for r in JsonLedgerStore(path).load()]
        self.assertEqual(ids, ["W1", "B2"])

    def test_screenshots_written_per_scenario(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            shot_dir = Path(tmp) / "screenshots"
            recorder = DifferenceRecorder(MemoryLedgerStore(), screenshot_dir=shot_dir, verbose=False)
            recorder.record_if_mismatched(mismatch("E1-edit-tmp", ScreenshotPair(b"old", b"new")))

            self.assertEqual((shot_dir / "E1-edit-tmp" / "old-app.png").read_bytes(), b"old")
            self.assertEqual((shot_dir / "E1-edit-tmp" / "spicy-claude.png").read_bytes(), b"new")

    def test_save_failure_is_warned_and_swallowed(self) -> None:
        recorder = DifferenceRecorder(BrokenStore(save_error=PermissionError("read-only")), verbose=False)
        with self.assertWarns(UserWarning):
            written = recorder.record_if_mismatched(mismatch())
        self.assertFalse(written)

    def test_corrupt_ledger_is_not_overwritten(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "differences.json"
            path.write_text("{not json", encoding="utf-8")
            recorder = DifferenceRecorder(JsonLedgerStore(path), verbose=False)
            with self.assertWarns(UserWarning):
                written = recorder.record_if_mismatched(mismatch())
            self.assertFalse(written)
            self.assertEqual(path.read_text(encoding="utf-8"), "{not json")

    def test_misshapen_ledger_entry_is_warned_and_not_overwritten(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "differences.json"
            original = json.dumps([{"scenario_id": "x", "baseline": "oops"}])
            path.write_text(original, encoding="utf-8")
            recorder = DifferenceRecorder(JsonLedgerStore(path), verbose=False)
            with self.assertWarns(UserWarning):
                written = recorder.record_if_mismatched(mismatch())
            self.assertFalse(written)
            self.assertEqual(path.read_text(encoding="utf-8"), original)

    def test_ledger_rejects_non_object_entries(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "differences.json"
            for payload in ([1, 2], [{"mismatch_reasons": "SUCCESS MISMATCH"}]):
                path.write_text(json.dumps(payload), encoding="utf-8")
                with self.assertRaises(ValueError):
                    JsonLedgerStore(path).load()


class SummaryTests(unittest.TestCase):
    def test_absent_ledger_reports_no_differences(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            summary_path = Path(tmp) / "DIFFERENCES-SUMMARY.md"
            recorder = DifferenceRecorder(JsonLedgerStore(Path(tmp) / "missing.json"), summary_path=summary_path)
            self.assertEqual(recorder.generate_summary(), NO_DIFFERENCES)
            self.assertEqual(summary_path.read_text(encoding="utf-8"), NO_DIFFERENCES)

    def test_summary_sections(self) -> None:
        store = MemoryLedgerStore([mismatch("W1-write-tmp"), mismatch("B4-bash-heredoc")])
        summary = DifferenceRecorder(store).generate_summary()

        self.assertIn("**Total Tests with Differences**: 2", summary)
        self.assertIn("## 1. Test: W1-write-tmp", summary)
        self.assertIn("## 2. Test: B4-bash-heredoc", summary)
        self.assertIn("**Timestamp**: 2026-01-01T10:00:00", summary)
        self.assertIn("### Old App Result\n- **Success**: true\n- **Permission Prompted**: false\n", summary)
        self.assertIn("### Spicy Claude Result\n- **Success**: false", summary)
        self.assertIn("- **Error**: cannot write file", summary)
        self.assertIn("### Differences\n- SUCCESS MISMATCH: Old=true, Spicy=false\n", summary)
        self.assertEqual(summary.count("---\n"), 2)

    def test_summary_is_idempotent_and_overwrites(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            store = JsonLedgerStore(Path(tmp) / "differences.json")
            summary_path = Path(tmp) / "DIFFERENCES-SUMMARY.md"
            recorder = DifferenceRecorder(store, summary_path=summary_path, verbose=False)
            recorder.record_if_mismatched(mismatch())

            first = recorder.generate_summary()
            second = recorder.generate_summary()

            self.assertEqual(first, second)
            self.assertEqual(summary_path.read_text(encoding="utf-8"), second)

    def test_unreadable_ledger_keeps_previous_summary(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            ledger = Path(tmp) / "differences.json"
            ledger.write_text(json.dumps([{"baseline": "oops"}]), encoding="utf-8")
            summary_path = Path(tmp) / "DIFFERENCES-SUMMARY.md"
            summary_path.write_text("# previous summary\n", encoding="utf-8")
            recorder = DifferenceRecorder(JsonLedgerStore(ledger), summary_path=summary_path, verbose=False)

            with self.assertWarns(UserWarning):
                summary = recorder.generate_summary()

            self.assertNotEqual(summary, NO_DIFFERENCES)
            self.assertIn("could not be read", summary)
            self.assertIsNotNone(recorder.ledger_error)
            self.assertEqual(summary_path.read_text(encoding="utf-8"), "# previous summary\n")

    def test_ledger_error_clears_after_readable_summary(self) -> None:
        recorder = DifferenceRecorder(BrokenStore(load_error=ValueError("bad")), verbose=False)
        with self.assertWarns(UserWarning):
            recorder.generate_summary()
        recorder.store = MemoryLedgerStore()
        self.assertEqual(recorder.generate_summary(), NO_DIFFERENCES)
        self.assertIsNone(recorder.ledger_error)


if __name__ == "__main__":
    unittest.main()
