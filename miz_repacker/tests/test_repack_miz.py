"""Tests for the repack orchestration and CLI."""
from __future__ import annotations

import random
import tempfile
import unittest
import zipfile
from pathlib import Path
from unittest import mock

from miz_repacker import repack_miz as repacker
from miz_repacker.config import parse_config
from miz_repacker.errors import ConfigError, PatchError, RepackError

MISSION = (Path(__file__).parent / "data" / "mission.lua").read_text(encoding="utf-8")

CONFIG_TOML = """
[preset.dawn]
time = "5:45"
weather = ["calm"]

[preset.dusk]
time = "19:00"
weather = ["calm", "windy"]
flip_wind = true

[weather.calm]
cloud_preset = "Preset1"
cloud_base_min = 3000
cloud_base_max = 3500

[weather.windy]
inherit = ["calm"]
wind_ground_speed_min = 8
wind_ground_speed_max = 12
wind_ground_heading_min = 90
wind_ground_heading_max = 90
"""


def make_miz(path: Path, mission: str = MISSION) -> Path:
    with zipfile.ZipFile(path, "w") as z:
        z.writestr("mission", mission.encode("utf-8"))
        z.writestr("options", b"options = {}")
    return path


class TestGeneratePreset(unittest.TestCase):
    """Tests for generate_preset function."""

    def test_time_only(self) -> None:
        config = parse_config({"preset": {"noon": {"time": "12"}}})
        result = repacker.generate_preset(MISSION, config, "noon", random.Random(1))
        self.assertEqual(
            MISSION.replace('    ["start_time"] = 28800,', '    ["start_time"] = 43200,'), result
        )

    def test_preset_flip_inverts_wind(self) -> None:
        """flip_wind on the preset turns a never-flipped profile around."""
        config = parse_config(
            {
                "preset": {"p": {"time": "12", "weather": ["w"], "flip_wind": True}},
                "weather": {"w": {"cloud_preset": "Preset1", "wind_ground_heading_min": 90}},
            }
        )
        result = repacker.generate_preset(MISSION, config, "p", random.Random(1))
        self.assertRegex(result, r'\["atGround"\] = \s*\{\s*\["speed"\] = 0,\s*\["dir"\] = 270,')

    def test_missing_profile(self) -> None:
        config = parse_config({"preset": {"p": {"time": "12", "weather": ["ghost"]}}})
        with self.assertRaises(ConfigError) as ctx:
            repacker.generate_preset(MISSION, config, "p", random.Random(1))
        self.assertIn("ghost", str(ctx.exception))

    def test_original_mission_untouched(self) -> None:
        """Each preset works on its own copy of the mission."""
        config = parse_config({"preset": {"a": {"time": "1"}, "b": {"time": "2"}}})
        original = str(MISSION)
        a = repacker.generate_preset(MISSION, config, "a", random.Random(1))
        b = repacker.generate_preset(MISSION, config, "b", random.Random(1))
        self.assertEqual(original, MISSION)
        self.assertIn('    ["start_time"] = 3600,', a)
        self.assertIn('    ["start_time"] = 7200,', b)


class TestRepackMiz(unittest.TestCase):
    """Tests for repack_miz function."""

    def setUp(self) -> None:
        self.config = parse_config(
            {
                "preset": {
                    "dawn": {"time": "5:45", "weather": ["calm"]},
                    "dusk": {"time": "19:00"},
                },
                "weather": {"calm": {"cloud_preset": "Preset1", "qnh_min": 770}},
                "misc": {"remove_required_modules": True},
            }
        )

    def test_writes_one_miz_per_preset(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            miz = make_miz(Path(tmpdir) / "Training.miz")
            written = repacker.repack_miz(str(miz), self.config, random.Random(2))

            self.assertEqual(
                {miz.with_name("Training_dawn.miz"), miz.with_name("Training_dusk.miz")},
                set(written),
            )
            with zipfile.ZipFile(miz.with_name("Training_dawn.miz")) as z:
                dawn = z.read("mission").decode("utf-8")
                self.assertEqual(b"options = {}", z.read("options"))
            with zipfile.ZipFile(miz.with_name("Training_dusk.miz")) as z:
                dusk = z.read("mission").decode("utf-8")

            self.assertIn('    ["start_time"] = 20700,', dawn)
            self.assertIn('["qnh"] = 770.00,', dawn)
            self.assertNotIn('["Hercules"]', dawn)
            self.assertIn('    ["start_time"] = 68400,', dusk)
            self.assertIn('["qnh"] = 760,', dusk)
            # The source archive is not modified
            with zipfile.ZipFile(miz) as z:
                self.assertEqual(MISSION, z.read("mission").decode("utf-8"))

    def test_failed_preset_writes_nothing(self) -> None:
        """A missing anchor aborts before that preset's archive is written."""
        mission = MISSION.replace('["qnh"] = 760,\n', "")
        config = parse_config(
            {
                "preset": {"dawn": {"time": "5:45", "weather": ["calm"]}},
                "weather": {"calm": {"cloud_preset": "Preset1", "qnh_min": 770}},
            }
        )
        with tempfile.TemporaryDirectory() as tmpdir:
            miz = make_miz(Path(tmpdir) / "Training.miz", mission)
            with self.assertRaises(PatchError):
                repacker.repack_miz(str(miz), config, random.Random(2))
            self.assertFalse(miz.with_name("Training_dawn.miz").exists())

    def test_dry_run(self) -> None:
        """Dry runs read and write nothing."""
        with tempfile.TemporaryDirectory() as tmpdir:
            with mock.patch.object(repacker.archive, "read_mission") as read, \
                    mock.patch.object(repacker.archive, "write_miz") as write:
                written = repacker.repack_miz(
                    str(Path(tmpdir) / "none.miz"), self.config, random.Random(2), dry_run=True
                )
            read.assert_not_called()
            write.assert_not_called()
            self.assertEqual([], written)
            self.assertEqual([], list(Path(tmpdir).iterdir()))

    def test_dry_run_catches_config_errors(self) -> None:
        config = parse_config({"preset": {"p": {"time": "12", "weather": ["ghost"]}}})
        with self.assertRaises(ConfigError):
            repacker.repack_miz(repacker.DRY_RUN_PATH, config, random.Random(2), dry_run=True)


class TestRecentFile(unittest.TestCase):
    """Tests for the most-recently-used bookkeeping."""

    def test_round_trip(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            tmp = Path(tmpdir)
            recent = tmp / repacker.RECENT_FILE_NAME
            miz = tmp / "Mission.miz"
            repacker.write_recent(recent, miz)
            self.assertEqual(str(miz.resolve()), repacker.resolve_miz_path(None, recent))

    def test_argument_wins(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            recent = Path(tmpdir) / repacker.RECENT_FILE_NAME
            recent.write_text("/old/path.miz")
            self.assertEqual("new.miz", repacker.resolve_miz_path("new.miz", recent))

    def test_nothing_to_run(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            with self.assertRaises(RepackError):
                repacker.resolve_miz_path(None, Path(tmpdir) / repacker.RECENT_FILE_NAME)

    def test_recent_file_next_to_config(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            config_path = Path(tmpdir) / "repack.toml"
            self.assertEqual(
                config_path.resolve().parent / repacker.RECENT_FILE_NAME,
                repacker.recent_file_path(config_path),
            )


class TestMain(unittest.TestCase):
    """Tests for the command line entry point."""

    def test_dry_run(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            config_path = Path(tmpdir) / "repack.toml"
            config_path.write_text(CONFIG_TOML, encoding="utf-8")
            code = repacker.main(["--dry-run", "--batch", "--seed", "1", "-c", str(config_path)])
        self.assertEqual(0, code)

    def test_full_run_records_recent(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            tmp = Path(tmpdir)
            config_path = tmp / "repack.toml"
            config_path.write_text(CONFIG_TOML, encoding="utf-8")
            miz = make_miz(tmp / "Op.miz")

            code = repacker.main(["--batch", "-c", str(config_path), str(miz)])

            self.assertEqual(0, code)
            self.assertTrue((tmp / "Op_dawn.miz").exists())
            self.assertTrue((tmp / "Op_dusk.miz").exists())
            recent = tmp / repacker.RECENT_FILE_NAME
            self.assertEqual(str(miz.resolve()), recent.read_text(encoding="utf-8"))

            # A second run without a path reuses the recorded mission
            (tmp / "Op_dawn.miz").unlink()
            self.assertEqual(0, repacker.main(["--batch", "-c", str(config_path)]))
            self.assertTrue((tmp / "Op_dawn.miz").exists())

    def test_bad_config(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            config_path = Path(tmpdir) / "repack.toml"
            config_path.write_text('[preset.a]\ntime = "1"\ncolour = "red"\n', encoding="utf-8")
            with self.assertLogs("miz_repacker", level="ERROR"):
                code = repacker.main(["--dry-run", "--batch", "-c", str(config_path)])
        self.assertEqual(1, code)

    def test_missing_miz(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            config_path = Path(tmpdir) / "repack.toml"
            config_path.write_text(CONFIG_TOML, encoding="utf-8")
            code = repacker.main(["--batch", "-c", str(config_path), str(Path(tmpdir) / "no.miz")])
        self.assertEqual(1, code)

    def test_undecodable_mission(self) -> None:
        """A mission entry that is not UTF-8 fails with exit code 1."""
        with tempfile.TemporaryDirectory() as tmpdir:
            tmp = Path(tmpdir)
            config_path = tmp / "repack.toml"
            config_path.write_text(CONFIG_TOML, encoding="utf-8")
            miz = tmp / "Bad.miz"
            with zipfile.ZipFile(miz, "w") as z:
                z.writestr("mission", b"\xff\xfe mission = {}")
            with self.assertLogs("miz_repacker", level="ERROR"):
                code = repacker.main(["--batch", "-c", str(config_path), str(miz)])
            self.assertFalse((tmp / "Bad_dawn.miz").exists())
        self.assertEqual(1, code)

    def test_usage_error_pauses(self) -> None:
        """Bad arguments still hold the console open before exiting."""
        with mock.patch.object(repacker, "pause") as pause, mock.patch("sys.stderr"):
            code = repacker.main(["--no-such-option"])
        self.assertEqual(2, code)
        pause.assert_called_once_with(False)

    def test_help_exits_cleanly(self) -> None:
        with mock.patch.object(repacker, "pause") as pause, mock.patch("sys.stdout"):
            with self.assertRaises(SystemExit) as ctx:
                repacker.main(["--help"])
        self.assertEqual(0, ctx.exception.code)
        pause.assert_not_called()

    def test_list_cloud_presets(self) -> None:
        with mock.patch("builtins.print") as printed:
            self.assertEqual(0, repacker.main(["--list-cloud-presets"]))
        lines = [call.args[0] for call in printed.call_args_list]
        self.assertTrue(any(line.startswith("Preset1 ") for line in lines))


if __name__ == "__main__":
    unittest.main()
