import json
import os
import tempfile
import unittest
from unittest import mock

from xml_changes.utils import settings


class TestSettings(unittest.TestCase):
    def setUp(self) -> None:
        self._home = tempfile.TemporaryDirectory()
        self.home = os.path.join(self._home.name, "config")
        patcher = mock.patch.dict(os.environ, {"XML_CHANGES_HOME": self.home})
        patcher.start()
        self.addCleanup(patcher.stop)
        self.addCleanup(self._home.cleanup)
        os.environ.pop("PROJECT_DIRECTORY", None)

    def test_missing_file_loads_empty(self) -> None:
        self.assertEqual(settings.load_settings(), {})
        self.assertIsNone(settings.get_default_project_directory())

    def test_save_merges_with_existing_settings(self) -> None:
        settings.save_settings({"other": 1})
        settings.save_settings({"project_directory": "/srv/app"})

        with open(os.path.join(self.home, "settings.json"), encoding="utf-8") as f:
            saved = json.load(f)

        self.assertEqual(saved, {"other": 1, "project_directory": "/srv/app"})

    def test_set_default_stores_absolute_path(self) -> None:
        self.assertTrue(settings.set_default_project_directory("relative/dir"))

        self.assertEqual(settings.get_default_project_directory(), os.path.abspath("relative/dir"))

    def test_environment_wins_over_saved_value(self) -> None:
        settings.set_default_project_directory("/saved")

        with mock.patch.dict(os.environ, {"PROJECT_DIRECTORY": " /from/env "}):
            self.assertEqual(settings.get_default_project_directory(), "/from/env")

    def test_corrupt_file_is_ignored(self) -> None:
        os.makedirs(self.home)
        with open(os.path.join(self.home, "settings.json"), "w", encoding="utf-8") as f:
            f.write("{not json")

        self.assertEqual(settings.load_settings(), {})

    def test_non_object_file_is_ignored(self) -> None:
        os.makedirs(self.home)
        with open(os.path.join(self.home, "settings.json"), "w", encoding="utf-8") as f:
            f.write("[1, 2]")

        self.assertEqual(settings.load_settings(), {})


if __name__ == "__main__":
    unittest.main()
