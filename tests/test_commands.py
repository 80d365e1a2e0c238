import tempfile
import unittest
from pathlib import Path

from app import app
from commands import comment_cli, tasks_cli
from services.task_store import TaskFileStore
from services.work_log import WorkLogClient
from tests.utils.transport import FlaskTestTransport


class CommandsTestCase(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self._original = {
            "TASKS_ROOT": app.config["TASKS_ROOT"],
            "LOGS_ROOT": app.config["LOGS_ROOT"],
            "task_store": app.extensions["task_store"],
        }
        app.config["TESTING"] = True
        app.config["TASKS_ROOT"] = str(Path(self.tmpdir.name) / "epics")
        app.config["LOGS_ROOT"] = str(Path(self.tmpdir.name) / "logs")
        transport = FlaskTestTransport(app.test_client())
        app.extensions["task_store"] = TaskFileStore(
            transport, work_log=WorkLogClient(transport), default_repository="workflow"
        )
        self.runner = app.test_cli_runner()

    def tearDown(self):
        app.config["TASKS_ROOT"] = self._original["TASKS_ROOT"]
        app.config["LOGS_ROOT"] = self._original["LOGS_ROOT"]
        app.extensions["task_store"] = self._original["task_store"]
        self.tmpdir.cleanup()

    def test_create_list_and_update_status(self):
        created = self.runner.invoke(tasks_cli, ["create", "--title", "CLI task", "--content", "body"])
        self.assertEqual(created.exit_code, 0, created.output)
        task_id = created.output.strip()
        self.assertRegex(task_id, r"^task-\d+-[a-z0-9]{7}$")

        listed = self.runner.invoke(tasks_cli, ["list", "--refresh"])
        self.assertIn(f"{task_id}\tpending\tCLI task", listed.output)

        updated = self.runner.invoke(tasks_cli, ["status", task_id, "completed"])
        self.assertEqual(updated.exit_code, 0, updated.output)
        self.assertIn("is now completed", updated.output)

    def test_status_of_missing_task_fails(self):
        result = self.runner.invoke(tasks_cli, ["status", "task-1-missing", "completed"])
        self.assertNotEqual(result.exit_code, 0)
        self.assertIn("Task task-1-missing not found", result.output)

    def test_list_without_tasks(self):
        result = self.runner.invoke(tasks_cli, ["list"])
        self.assertIn("No tasks found.", result.output)

    def test_comment_preview(self):
        result = self.runner.invoke(comment_cli, ["preview", "progress", "--var", "status=리뷰 대기"])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("**현재 상황:** 리뷰 대기", result.output)

    def test_comment_preview_rejects_malformed_variable(self):
        result = self.runner.invoke(comment_cli, ["preview", "progress", "--var", "status"])
        self.assertNotEqual(result.exit_code, 0)


if __name__ == "__main__":
    unittest.main()
