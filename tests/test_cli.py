import io
import os
import tempfile
import unittest
from contextlib import redirect_stdout
from unittest import mock

from xml_changes import cli
from xml_changes.modules.xml_parser import FileChange, parse_xml_string

LEGACY_DOCUMENT = """<code_changes>
  <changed_files>
    <file_summary>Add config</file_summary>
    <file_operation>create</file_operation>
    <file_path>conf/app.ini</file_path>
    <file_code><![CDATA[
[app]
debug = true
]]></file_code>
    <file_summary>Drop old config</file_summary>
    <file_operation>DELETE</file_operation>
    <file_path>app.cfg</file_path>
  </changed_files>
</code_changes>
"""


class TestCli(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = self._tmp.name
        self.addCleanup(self._tmp.cleanup)
        patcher = mock.patch.dict(os.environ, {"XML_CHANGES_HOME": os.path.join(self.root, ".home")})
        patcher.start()
        self.addCleanup(patcher.stop)
        os.environ.pop("PROJECT_DIRECTORY", None)

        self.project = os.path.join(self.root, "project")
        os.mkdir(self.project)
        self.document_path = os.path.join(self.root, "changes.xml")
        with open(self.document_path, "w", encoding="utf-8") as f:
            f.write(LEGACY_DOCUMENT)

    def run_cli(self, *argv: str):
        out = io.StringIO()
        with redirect_stdout(out):
            code = cli.main(list(argv))
        return code, out.getvalue()

    def test_apply_from_file(self) -> None:
        with open(os.path.join(self.project, "app.cfg"), "w", encoding="utf-8") as f:
            f.write("old")

        code, _ = self.run_cli("apply", self.document_path, "--dir", self.project)

        self.assertEqual(code, 0)
        with open(os.path.join(self.project, "conf", "app.ini"), encoding="utf-8") as f:
            self.assertEqual(f.read(), "[app]\ndebug = true")
        self.assertFalse(os.path.exists(os.path.join(self.project, "app.cfg")))

    def test_apply_from_clipboard_uses_saved_directory(self) -> None:
        self.run_cli("config", "--set-dir", self.project)

        with mock.patch("xml_changes.cli.read_from_clipboard", return_value=LEGACY_DOCUMENT):
            code, _ = self.run_cli("apply", "--clipboard")

        self.assertEqual(code, 0)
        self.assertTrue(os.path.exists(os.path.join(self.project, "conf", "app.ini")))

    def test_apply_reports_failure_exit_code(self) -> None:
        code, _ = self.run_cli("apply", self.document_path, "--dir", os.path.join(self.root, "missing"))

        self.assertEqual(code, 1)

    def test_preview_does_not_apply(self) -> None:
        with mock.patch("xml_changes.cli.display_previews") as display:
            code, _ = self.run_cli("preview", self.document_path, "--dir", self.project)

        self.assertEqual(code, 0)
        previews = display.call_args[0][0]
        self.assertEqual([p["path"] for p in previews], ["conf/app.ini", "app.cfg"])
        self.assertEqual(os.listdir(self.project), [])

    def test_normalize_prints_wrapped_document(self) -> None:
        code, output = self.run_cli("normalize", self.document_path)

        self.assertEqual(code, 0)
        self.assertIn("<file>", output)
        self.assertEqual(
            parse_xml_string(output),
            [
                FileChange("Add config", "CREATE", "conf/app.ini", "[app]\ndebug = true"),
                FileChange("Drop old config", "DELETE", "app.cfg"),
            ],
        )

    def test_normalize_copy_uses_clipboard(self) -> None:
        with mock.patch("xml_changes.cli.copy_to_clipboard") as copy:
            code, _ = self.run_cli("normalize", self.document_path, "--copy")

        self.assertEqual(code, 0)
        copy.assert_called_once()
        self.assertIn("<code_changes>", copy.call_args[0][0])

    def test_normalize_rejects_bad_document(self) -> None:
        bad_path = os.path.join(self.root, "bad.xml")
        with open(bad_path, "w", encoding="utf-8") as f:
            f.write("<changes/>")

        code, _ = self.run_cli("normalize", bad_path)

        self.assertEqual(code, 1)

    def test_config_set_dir(self) -> None:
        code, output = self.run_cli("config", "--set-dir", self.project)

        self.assertEqual(code, 0)
        self.assertIn("Default project directory", output)


if __name__ == "__main__":
    unittest.main()
