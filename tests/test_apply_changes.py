import errno
import os
import tempfile
import unittest
from unittest import mock

from xml_changes.modules.apply_changes import ApplyError, apply_file_change, resolve_path
from xml_changes.modules.xml_parser import FileChange


class TestResolvePath(unittest.TestCase):
    def test_relative_path_is_joined(self) -> None:
        root = os.path.abspath(os.path.join(os.sep, "projects", "app"))

        self.assertEqual(resolve_path("src/main.py", root), os.path.join(root, "src", "main.py"))

    def test_absolute_path_is_used_verbatim(self) -> None:
        absolute = os.path.abspath(os.path.join(os.sep, "elsewhere", "file.txt"))

        self.assertEqual(resolve_path(absolute, os.path.abspath("project")), absolute)


class TestApplyFileChange(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = self._tmp.name

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def read(self, *parts: str) -> str:
        with open(os.path.join(self.root, *parts), "r", encoding="utf-8", newline="") as f:
            return f.read()

    def test_create_writes_exact_content_and_parent_directories(self) -> None:
        content = "line one\r\nline two\n\tünïcödé"
        change = FileChange("add", "CREATE", "deep/nested/dir/file.txt", content)

        resolved = apply_file_change(change, self.root)

        self.assertEqual(resolved, os.path.join(self.root, "deep", "nested", "dir", "file.txt"))
        self.assertEqual(self.read("deep", "nested", "dir", "file.txt"), content)

    def test_update_overwrites_completely(self) -> None:
        apply_file_change(FileChange("add", "CREATE", "a.txt", "a much longer original content"), self.root)

        apply_file_change(FileChange("shrink", "UPDATE", "a.txt", "short"), self.root)

        self.assertEqual(self.read("a.txt"), "short")

    def test_update_creates_missing_file(self) -> None:
        apply_file_change(FileChange("update", "UPDATE", "new/b.txt", "b"), self.root)

        self.assertEqual(self.read("new", "b.txt"), "b")

    def test_delete_removes_file(self) -> None:
        apply_file_change(FileChange("add", "CREATE", "gone.txt", "x"), self.root)

        resolved = apply_file_change(FileChange("remove", "DELETE", "gone.txt"), self.root)

        self.assertFalse(os.path.exists(resolved))

    def test_delete_missing_file_succeeds(self) -> None:
        resolved = apply_file_change(FileChange("remove", "DELETE", "never/was.txt"), self.root)

        self.assertEqual(resolved, os.path.join(self.root, "never", "was.txt"))

    def test_absolute_path_ignores_root(self) -> None:
        with tempfile.TemporaryDirectory() as other:
            target = os.path.join(other, "abs.txt")

            resolved = apply_file_change(FileChange("abs", "CREATE", target, "abs"), self.root)

            self.assertEqual(resolved, target)
            with open(target, encoding="utf-8") as f:
                self.assertEqual(f.read(), "abs")
        self.assertEqual(os.listdir(self.root), [])

    def test_unknown_operation_is_a_no_op(self) -> None:
        resolved = apply_file_change(FileChange("move", "RENAME", "x.txt", "x"), self.root)

        self.assertEqual(resolved, os.path.join(self.root, "x.txt"))
        self.assertEqual(os.listdir(self.root), [])

    def test_create_without_code_fails(self) -> None:
        with self.assertRaises(ApplyError):
            apply_file_change(FileChange("add", "CREATE", "a.txt", None), self.root)

    def test_directory_creation_failure_reports_resolved_path(self) -> None:
        apply_file_change(FileChange("blocker", "CREATE", "blocker", "i am a file"), self.root)

        with self.assertRaises(ApplyError) as ctx:
            apply_file_change(FileChange("child", "CREATE", "blocker/child.txt", "x"), self.root)

        self.assertEqual(ctx.exception.path, "blocker/child.txt")
        self.assertEqual(ctx.exception.resolved_path, os.path.join(self.root, "blocker", "child.txt"))

    def test_failed_write_keeps_previous_content(self) -> None:
        apply_file_change(FileChange("add", "CREATE", "keep.txt", "original"), self.root)

        with mock.patch(
            "xml_changes.modules.apply_changes.os.replace",
            side_effect=OSError(errno.EACCES, "Permission denied"),
        ):
            with self.assertRaises(ApplyError) as ctx:
                apply_file_change(FileChange("update", "UPDATE", "keep.txt", "replacement"), self.root)

        self.assertIn("Permission denied", str(ctx.exception))
        self.assertEqual(self.read("keep.txt"), "original")
        self.assertEqual(os.listdir(self.root), ["keep.txt"])

    def test_no_temporary_files_left_behind(self) -> None:
        apply_file_change(FileChange("add", "CREATE", "dir/a.txt", "a"), self.root)
        apply_file_change(FileChange("update", "UPDATE", "dir/a.txt", "b"), self.root)

        self.assertEqual(os.listdir(os.path.join(self.root, "dir")), ["a.txt"])

    @unittest.skipIf(os.name == "nt", "symlinks need privileges on Windows")
    def test_update_writes_through_symlink(self) -> None:
        apply_file_change(FileChange("add", "CREATE", "real.cfg", "old"), self.root)
        link = os.path.join(self.root, "link.cfg")
        os.symlink(os.path.join(self.root, "real.cfg"), link)

        apply_file_change(FileChange("update", "UPDATE", "link.cfg", "new"), self.root)

        self.assertTrue(os.path.islink(link))
        self.assertEqual(self.read("real.cfg"), "new")
        self.assertEqual(self.read("link.cfg"), "new")
        self.assertEqual(sorted(os.listdir(self.root)), ["link.cfg", "real.cfg"])

    @unittest.skipIf(os.name == "nt", "POSIX permissions")
    def test_update_keeps_file_mode(self) -> None:
        apply_file_change(FileChange("add", "CREATE", "run.sh", "echo hi"), self.root)
        path = os.path.join(self.root, "run.sh")
        os.chmod(path, 0o755)

        apply_file_change(FileChange("update", "UPDATE", "run.sh", "echo bye"), self.root)

        self.assertEqual(os.stat(path).st_mode & 0o777, 0o755)


if __name__ == "__main__":
    unittest.main()
