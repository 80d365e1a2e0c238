import tempfile
import threading
import time
import unittest
from pathlib import Path

from utils.file_lock import FileLockRegistry, KeyedLock


def _wait_until(predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            raise AssertionError("condition not reached in time")
        time.sleep(0.005)


class KeyedLockTestCase(unittest.TestCase):
    def test_waiters_run_in_submission_order(self):
        locks = KeyedLock()
        order = []
        release = threading.Event()

        def holder():
            with locks.hold("key"):
                release.wait(5)
                order.append("holder")

        def waiter(name):
            with locks.hold("key"):
                order.append(name)

        threads = [threading.Thread(target=holder)]
        threads[0].start()
        _wait_until(lambda: locks.queued("key") == 1)
        for index, name in enumerate(["first", "second", "third"], start=2):
            thread = threading.Thread(target=waiter, args=(name,))
            thread.start()
            threads.append(thread)
            _wait_until(lambda index=index: locks.queued("key") == index)

        release.set()
        for thread in threads:
            thread.join(5)

        self.assertEqual(order, ["holder", "first", "second", "third"])

    def test_entries_are_discarded_when_idle(self):
        locks = KeyedLock()
        with locks.hold("a"):
            with locks.hold("b"):
                self.assertEqual(len(locks), 2)
        self.assertEqual(len(locks), 0)
        self.assertEqual(locks.queued("a"), 0)

    def test_lock_released_after_exception(self):
        locks = KeyedLock()
        with self.assertRaises(RuntimeError):
            with locks.hold("key"):
                raise RuntimeError("boom")
        self.assertEqual(len(locks), 0)
        with locks.hold("key"):
            pass

    def test_different_keys_do_not_block(self):
        locks = KeyedLock()
        entered = threading.Event()

        def other():
            with locks.hold("other"):
                entered.set()

        with locks.hold("key"):
            thread = threading.Thread(target=other)
            thread.start()
            self.assertTrue(entered.wait(5))
            thread.join(5)


class FileLockRegistryTestCase(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.registry = FileLockRegistry()
        self.path = Path(self.tmpdir.name) / "nested" / "file.md"

    def tearDown(self):
        self.tmpdir.cleanup()

    def test_create_refuses_existing_file(self):
        self.registry.create(self.path, "one")
        with self.assertRaises(FileExistsError):
            self.registry.create(self.path, "two")
        self.assertEqual(self.path.read_text(encoding="utf-8"), "one")

    def test_update_requires_existing_file(self):
        with self.assertRaises(FileNotFoundError):
            self.registry.update(self.path, "content")
        self.assertFalse(self.path.exists())

    def test_append_writes_header_once(self):
        self.assertTrue(self.registry.append(self.path, "entry 1\n", header="# Header\n"))
        self.assertFalse(self.registry.append(self.path, "entry 2\n", header="# Header\n"))
        self.assertEqual(self.path.read_text(encoding="utf-8"), "# Header\nentry 1\nentry 2\n")

    def test_concurrent_appends_keep_every_entry(self):
        def append(index):
            self.registry.append(self.path, f"entry {index}\n", header="# Header\n")

        threads = [threading.Thread(target=append, args=(index,)) for index in range(20)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(5)

        lines = self.path.read_text(encoding="utf-8").splitlines()
        self.assertEqual(lines[0], "# Header")
        self.assertEqual(sorted(lines[1:]), sorted(f"entry {index}" for index in range(20)))
        self.assertEqual(len(self.registry.locks), 0)

    def test_writes_leave_no_temp_files(self):
        self.registry.write(self.path, "content")
        leftovers = [path.name for path in self.path.parent.iterdir() if path.suffix == ".tmp"]
        self.assertEqual(leftovers, [])

    def test_delete(self):
        self.registry.write(self.path, "content")
        self.registry.delete(self.path)
        self.assertFalse(self.path.exists())
        with self.assertRaises(FileNotFoundError):
            self.registry.delete(self.path)


if __name__ == "__main__":
    unittest.main()
