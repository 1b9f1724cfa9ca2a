import tempfile
import unittest
from pathlib import Path

from harness import chat
from harness.ledger import MemoryLedgerStore
from harness.recorder import DifferenceRecorder
from harness.scenarios import build_catalog, select_scenarios
from harness.side_by_side import run_side_by_side
from tests.fakes import FakePage


class CatalogTests(unittest.TestCase):
    def test_catalog_ids_in_order(self) -> None:
        ids = [s.id for s in build_catalog("/srv/project/", "123")]
        self.assertEqual(ids, [
            "W1-write-tmp", "W2-write-project", "W3-write-home", "W4-write-nested",
            "R1-read-tmp", "R2-read-project",
            "E1-edit-tmp", "E2-edit-project",
            "B1-bash-echo-tmp", "B2-bash-touch-tmp", "B3-bash-touch-project", "B4-bash-heredoc",
        ])

    def test_commands_embed_paths(self) -> None:
        catalog = {s.id: s for s in build_catalog("/srv/project/", "123")}
        self.assertEqual(
            catalog["W2-write-project"].command,
            'Create a test file at /srv/project/test-write-123.txt with content "project test"',
        )
        self.assertEqual(catalog["W3-write-home"].test_file, "~/test-home-123.txt")
        self.assertIn("Line 1\nLine 2\nLine 3", catalog["B4-bash-heredoc"].command)

    def test_select_by_prefix_and_group(self) -> None:
        catalog = build_catalog("/p", "1")
        self.assertEqual([s.id for s in select_scenarios(catalog, ids=["w1", "B4"])], ["W1-write-tmp", "B4-bash-heredoc"])
        self.assertEqual([s.id for s in select_scenarios(catalog, groups=["edit"])], ["E1-edit-tmp", "E2-edit-project"])
        self.assertEqual(select_scenarios(catalog, ids=["W1"], groups=["bash"]), [])
        self.assertEqual(len(select_scenarios(catalog)), 12)


class ScenarioRunTests(unittest.IsolatedAsyncioTestCase):
    async def test_write_scenario_checks_filesystem(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            scenario = {s.id: s for s in build_catalog(tmp, "7")}["W2-write-project"]
            target = Path(scenario.test_file)

            def create(_message: str) -> None:
                target.write_text("project test", encoding="utf-8")

            page = FakePage(reply="Created the file.", prompted=True, on_send=create)
            outcome = await scenario.as_callable(tmp)(page)

            self.assertTrue(outcome.succeeded)
            self.assertTrue(outcome.permission_prompted)
            self.assertIsNone(outcome.error_message)
            self.assertTrue(page.clicked(chat.ALLOW_BUTTON))
            self.assertEqual(page.calls[0], ("clear",))

            scenario.cleanup()
            self.assertFalse(target.exists())

    async def test_missing_file_fails_even_with_clean_reply(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            scenario = {s.id: s for s in build_catalog(tmp, "8")}["B3-bash-touch-project"]
            outcome = await scenario.as_callable(tmp)(FakePage(reply="Done"))
        self.assertFalse(outcome.succeeded)
        self.assertIsNone(outcome.error_message)
        self.assertFalse(outcome.permission_prompted)

    async def test_edit_scenario_setup_and_verify(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            scenario = {s.id: s for s in build_catalog(tmp, "9")}["E2-edit-project"]
            scenario.setup()
            target = Path(scenario.test_file)
            self.assertEqual(target.read_text(encoding="utf-8"), "Original project content")

            def edit(_message: str) -> None:
                with target.open("a", encoding="utf-8") as f:
                    f.write("\nThis line was added by test")

            outcome = await scenario.as_callable(tmp)(FakePage(reply="Edited.", on_send=edit))
            self.assertTrue(outcome.succeeded)

    async def test_side_by_side_records_divergence(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            scenario = {s.id: s for s in build_catalog(tmp, "10")}["R2-read-project"]
            old = FakePage("old", reply="This project manages a homelab.")
            new = FakePage("new", reply="Error: cannot read README.md", prompted=True)
            store = MemoryLedgerStore()

            record = await run_side_by_side(
                scenario.as_callable(tmp),
                old,
                new,
                scenario.id,
                recorder=DifferenceRecorder(store, verbose=False),
            )

        self.assertEqual(record.mismatch_reasons, [
            "SUCCESS MISMATCH: Old=true, Spicy=false",
            "PERMISSION PROMPT MISMATCH: Old=false, Spicy=true",
            "ERROR IN SPICY CLAUDE ONLY: Error: cannot read README.md",
        ])
        self.assertEqual(record.screenshots.candidate, b"png:new")
        self.assertEqual([r.scenario_id for r in store.records], ["R2-read-project"])


if __name__ == "__main__":
    unittest.main()
