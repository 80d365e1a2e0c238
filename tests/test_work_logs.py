import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from app import app
from models.task import TaskStatus
from models.work_log import WorkLogEntry, WorkLogMetadata
from services.work_log import WorkLogClient
from services.work_log_files import daily_log_header, format_log_entry, today
from tests.utils.transport import FlaskTestTransport


def _entry(**overrides):
    entry = {
        "timestamp": "2024-03-01T10:00:00.000Z",
        "taskId": "task-1",
        "taskTitle": "Fix bug",
        "repository": "demo",
        "status": "in_progress",
        "progressUpdate": "Halfway there",
    }
    entry.update(overrides)
    return entry


class WorkLogRoutesTestCase(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self._original_logs_root = app.config["LOGS_ROOT"]
        app.config["TESTING"] = True
        app.config["LOGS_ROOT"] = self.tmpdir.name
        self.client = app.test_client()
        self.log_dir = Path(self.tmpdir.name) / "demo"

    def tearDown(self):
        app.config["LOGS_ROOT"] = self._original_logs_root
        self.tmpdir.cleanup()

    def _post(self, payload):
        return self.client.post("/api/work-logs/entry", json=payload)

    def test_entries_are_appended_under_a_single_header(self):
        first = self._post({"repository": "demo", "entry": _entry()})
        second = self._post({"repository": "demo", "entry": _entry(taskTitle="Second", status="completed")})

        self.assertEqual(first.status_code, 200)
        self.assertTrue(first.get_json()["created"])
        self.assertFalse(second.get_json()["created"])

        text = (self.log_dir / f"{today()}.md").read_text(encoding="utf-8")
        self.assertTrue(text.startswith(f"# Work Log - demo - {today()}\n"))
        self.assertEqual(text.count("# Work Log - demo"), 1)
        self.assertLess(text.index("Fix bug (in_progress)"), text.index("Second (completed)"))
        self.assertIn("**Progress**: Halfway there", text)

    def test_existing_content_is_never_rewritten(self):
        self.log_dir.mkdir(parents=True)
        path = self.log_dir / f"{today()}.md"
        path.write_text("# Hand written\n\nkeep me\n", encoding="utf-8")

        self._post({"repository": "demo", "entry": _entry()})

        text = path.read_text(encoding="utf-8")
        self.assertTrue(text.startswith("# Hand written\n\nkeep me\n"))
        self.assertNotIn("# Work Log", text)

    def test_post_to_collection_root_is_accepted(self):
        response = self.client.post("/api/work-logs", json={"repository": "demo", "entry": _entry()})
        self.assertEqual(response.status_code, 200)

    def test_validation_errors(self):
        cases = [
            ({}, "Repository and entry are required"),
            ([1], "Repository and entry are required"),
            ("demo", "Repository and entry are required"),
            ({"repository": "demo", "entry": "text"}, "Entry is required and must be an object"),
            ({"repository": "demo", "entry": _entry(taskId="")}, "Entry must have taskId, taskTitle, and repository"),
            (
                {"repository": "demo", "entry": _entry(status="done")},
                "Entry status must be one of: pending, in_progress, completed, failed",
            ),
            ({"repository": "../demo", "entry": _entry()}, "Invalid repository name: contains illegal characters"),
        ]
        for payload, message in cases:
            with self.subTest(message=message):
                response = self._post(payload)
                self.assertEqual(response.status_code, 400)
                self.assertEqual(response.get_json()["message"], message)
        self.assertFalse(Path(self.tmpdir.name, "..", "demo").resolve().joinpath(f"{today()}.md").exists())

    def test_list_filters_by_date(self):
        self.log_dir.mkdir(parents=True)
        for date in ("2024-01-01", "2024-01-15", "2024-02-01"):
            (self.log_dir / f"{date}.md").write_text("# log\n", encoding="utf-8")
        (self.log_dir / "notes.txt").write_text("ignored", encoding="utf-8")

        response = self.client.get(
            "/api/work-logs?repository=demo&startDate=2024-01-10&endDate=2024-01-31"
        )

        self.assertEqual(response.status_code, 200)
        logs = response.get_json()
        self.assertEqual([log["date"] for log in logs], ["2024-01-15"])
        self.assertEqual(logs[0]["entries"], [])

    def test_list_requires_repository(self):
        self.assertEqual(self.client.get("/api/work-logs").status_code, 400)
        self.assertEqual(self.client.get("/api/work-logs?repository=a/b").status_code, 400)

    def test_list_unknown_repository_is_empty(self):
        response = self.client.get("/api/work-logs?repository=unknown")
        self.assertEqual(response.get_json(), [])


class WorkLogClientTestCase(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self._original_logs_root = app.config["LOGS_ROOT"]
        app.config["TESTING"] = True
        app.config["LOGS_ROOT"] = self.tmpdir.name
        self.transport = FlaskTestTransport(app.test_client())
        self.work_log = WorkLogClient(self.transport)

    def tearDown(self):
        app.config["LOGS_ROOT"] = self._original_logs_root
        self.tmpdir.cleanup()

    def _log_text(self):
        return (Path(self.tmpdir.name) / "demo" / f"{today()}.md").read_text(encoding="utf-8")

    def test_issue_and_improvement_helpers(self):
        self.assertTrue(self.work_log.log_issues_discovered("task-1", "T", "demo", ["slow query", "typo"]))
        self.assertTrue(self.work_log.log_improvements("task-1", "T", "demo", ["cache"]))

        text = self._log_text()
        self.assertIn("**Progress**: Issues discovered: 2 items", text)
        self.assertIn("**Issues Discovered**:\n- slow query\n- typo", text)
        self.assertIn("**Improvements Made**:\n- cache", text)

    def test_status_change_and_progress(self):
        self.work_log.log_task_status_change("task-1", "T", "demo", "failed", "Task failed", ["flaky test"])
        self.work_log.log_progress("task-1", "T", "demo", "Tokens spent", tokens_used=1200)

        text = self._log_text()
        self.assertIn("T (failed)", text)
        self.assertIn("- Tokens Used: 1200", text)

    def test_failures_are_swallowed(self):
        with self.assertLogs(level="ERROR"):
            self.assertFalse(self.work_log.log_task_created("task-1", "T", "../demo"))

    def test_network_failures_are_swallowed(self):
        with patch.object(self.transport, "request", side_effect=ConnectionError("down")):
            with self.assertLogs(level="ERROR"):
                self.assertFalse(self.work_log.log_progress("task-1", "T", "demo", "update"))
                self.assertEqual(self.work_log.get_work_logs("demo"), [])

    def test_get_work_logs(self):
        self.work_log.log_task_created("task-1", "T", "demo", branch="feature/t")
        logs = self.work_log.get_work_logs("demo", start_date=today())
        self.assertEqual([log.date for log in logs], [today()])
        self.assertEqual(logs[0].entries, [])


def test_format_log_entry_sections():
    entry = WorkLogEntry(
        task_id="task-1",
        task_title="Fix bug",
        repository="demo",
        status=TaskStatus.COMPLETED,
        progress_update="Done",
        metadata=WorkLogMetadata(branch="main", github_issue=12, pr_url="https://example.com/pr/1"),
    )

    text = format_log_entry(entry)

    assert text.startswith("### ")
    assert "- Fix bug (completed)\n\n" in text
    assert "**Metadata**:\n- Branch: main\n- GitHub Issue: #12\n- PR URL: https://example.com/pr/1\n" in text
    assert text.endswith("---\n\n")


def test_empty_metadata_block_is_omitted():
    entry = WorkLogEntry(
        task_id="task-1",
        task_title="T",
        repository="demo",
        status=TaskStatus.PENDING,
        metadata=WorkLogMetadata(),
    )
    assert "**Metadata**" not in format_log_entry(entry)


def test_daily_header():
    assert daily_log_header("demo", "2024-01-01").startswith("# Work Log - demo - 2024-01-01\n\n")
