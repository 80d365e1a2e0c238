import tempfile
import unittest
from pathlib import Path

from app import app


def _task_payload(task_id, title="Task", **metadata):
    return {"metadata": {"id": task_id, "title": title, "status": "pending", **metadata}, "content": "Body"}


class TaskRoutesTestCase(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self._original_tasks_root = app.config["TASKS_ROOT"]
        app.config["TESTING"] = True
        app.config["TASKS_ROOT"] = self.tmpdir.name
        self.client = app.test_client()
        self.tasks_dir = Path(self.tmpdir.name) / "repositories" / "demo" / "tasks"

    def tearDown(self):
        app.config["TASKS_ROOT"] = self._original_tasks_root
        self.tmpdir.cleanup()

    def _write(self, name, text):
        self.tasks_dir.mkdir(parents=True, exist_ok=True)
        (self.tasks_dir / name).write_text(text, encoding="utf-8")

    def test_list_sorts_by_updated_at_and_skips_template(self):
        self._write("task-1.md", '---\nid: "task-1"\ntitle: "Old"\nupdatedAt: "2024-01-01T00:00:00.000Z"\n---\n\nA')
        self._write("task-2.md", '---\nid: "task-2"\ntitle: "New"\nupdatedAt: "2024-02-01T00:00:00.000Z"\n---\n\nB')
        self._write("task-template.md", '---\nid: "template"\ntitle: "Template"\n---\n')

        response = self.client.get("/api/epics/tasks?repository=demo")

        self.assertEqual(response.status_code, 200)
        ids = [item["metadata"]["id"] for item in response.get_json()]
        self.assertEqual(ids, ["task-2", "task-1"])
        self.assertIn("no-store", response.headers["Cache-Control"])
        self.assertEqual(response.headers["Pragma"], "no-cache")

    def test_list_skips_unreadable_files(self):
        self._write("task-1.md", '---\nid: "task-1"\ntitle: "Fine"\n---\n\nA')
        self._write("task-broken.md", "---\ntitle: [unterminated\n---\n")

        with self.assertLogs(level="ERROR"):
            response = self.client.get("/api/epics/tasks?repository=demo")

        self.assertEqual([item["metadata"]["id"] for item in response.get_json()], ["task-1"])

    def test_list_missing_directory_is_empty(self):
        response = self.client.get("/api/epics/tasks?repository=nothing-here")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json(), [])

    def test_repository_traversal_is_rejected(self):
        response = self.client.get("/api/epics/tasks?repository=../secrets")
        self.assertEqual(response.status_code, 400)
        self.assertFalse(response.get_json()["success"])

    def test_create_then_conflict(self):
        response = self.client.post("/api/epics/tasks?repository=demo", json=_task_payload("task-9"))
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.get_json()["metadata"]["repository"], "demo")
        self.assertTrue((self.tasks_dir / "task-9.md").exists())

        again = self.client.post("/api/epics/tasks?repository=demo", json=_task_payload("task-9"))
        self.assertEqual(again.status_code, 409)

    def test_create_requires_id_and_title(self):
        response = self.client.post(
            "/api/epics/tasks?repository=demo", json={"metadata": {"title": "No id"}, "content": ""}
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()["message"], "Task ID and title are required")

    def test_create_rejects_id_with_path_separator(self):
        response = self.client.post("/api/epics/tasks?repository=demo", json=_task_payload("../escape"))
        self.assertEqual(response.status_code, 400)

    def test_get_and_update_task(self):
        self.client.post("/api/epics/tasks?repository=demo", json=_task_payload("task-3", "Before"))

        response = self.client.get("/api/epics/tasks/task-3?repository=demo")
        self.assertEqual(response.get_json()["metadata"]["title"], "Before")

        update = self.client.put(
            "/api/epics/tasks/task-3?repository=demo",
            json=_task_payload("task-3", "After", status="completed"),
        )
        self.assertEqual(update.status_code, 200)
        text = (self.tasks_dir / "task-3.md").read_text(encoding="utf-8")
        self.assertIn('title: "After"', text)
        self.assertIn('status: "completed"', text)

    def test_update_with_mismatched_id(self):
        self.client.post("/api/epics/tasks?repository=demo", json=_task_payload("task-4"))
        response = self.client.put("/api/epics/tasks/task-4?repository=demo", json=_task_payload("task-5"))
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()["message"], "Task ID mismatch")

    def test_update_missing_task(self):
        response = self.client.put("/api/epics/tasks/task-6?repository=demo", json=_task_payload("task-6"))
        self.assertEqual(response.status_code, 404)
        self.assertFalse((self.tasks_dir / "task-6.md").exists())

    def test_get_missing_task(self):
        response = self.client.get("/api/epics/tasks/task-7?repository=demo")
        self.assertEqual(response.status_code, 404)

    def test_html_rendering(self):
        payload = _task_payload("task-8")
        payload["content"] = "- one\n- two"
        self.client.post("/api/epics/tasks?repository=demo", json=payload)

        response = self.client.get("/api/epics/tasks/task-8/html?repository=demo")

        self.assertEqual(response.status_code, 200)
        self.assertIn("<li>one</li>", response.get_json()["html"])

    def test_delete_task(self):
        self.client.post("/api/epics/tasks?repository=demo", json=_task_payload("task-10"))
        self.assertEqual(self.client.delete("/api/epics/tasks/task-10?repository=demo").status_code, 200)
        self.assertEqual(self.client.delete("/api/epics/tasks/task-10?repository=demo").status_code, 404)


if __name__ == "__main__":
    unittest.main()
