import logging
import os
import time
import unittest
from pathlib import Path
from tempfile import TemporaryDirectory

from wifi_chooser.core import Config
from wifi_chooser.errors import CommandIOError, ProtocolError
from wifi_chooser.wpa_cli import WpaCli


def _write_script(directory: Path, name: str, body: str) -> Path:
    path = directory / name
    path.write_text("#!/bin/sh\n" + body, encoding="utf-8")
    os.chmod(path, 0o755)
    return path


class TestWpaCli(unittest.TestCase):
    def setUp(self) -> None:
        self._temp = TemporaryDirectory()
        self.temp_dir = Path(self._temp.name)
        self.commands = self.temp_dir / "commands.log"

    def tearDown(self) -> None:
        self._temp.cleanup()

    def _driver(self, body: str, scan_timeout: float = 10.0) -> WpaCli:
        script = _write_script(self.temp_dir, "wpa_cli", body)
        config = Config(
            library=self.temp_dir / "lib.toml",
            wpa_conf=self.temp_dir / "wpa.conf",
            wpa_cli=script,
            interface="wlan7",
            wpa_socket=Path("/run/wpa"),
            scan_timeout=scan_timeout,
        )
        return WpaCli(config)

    def _interactive(self, reply: str) -> str:
        return (
            "while read -r cmd; do\n"
            f'  echo "$cmd" >> "{self.commands}"\n'
            '  case "$cmd" in\n'
            f"    scan) {reply} ;;\n"
            "    quit) exit 0 ;;\n"
            "  esac\n"
            "done\n"
        )

    def test_base_command(self) -> None:
        driver = self._driver("exit 0\n")

        self.assertEqual(driver.base_command()[1:], ["-i", "wlan7", "-p", "/run/wpa"])

    def test_scan_waits_for_results_event_then_quits(self) -> None:
        driver = self._driver(
            self._interactive(
                "echo OK; echo '<3>CTRL-EVENT-SCAN-STARTED '; echo '<3>CTRL-EVENT-SCAN-RESULTS '"
            )
        )

        driver.run_interactive_scan()

        self.assertEqual(self.commands.read_text(encoding="utf-8").split(), ["scan", "quit"])

    def test_scan_failed_event_raises(self) -> None:
        driver = self._driver(self._interactive("echo OK; echo '<3>CTRL-EVENT-SCAN-FAILED ret=-16 retry=1'"))

        with self.assertRaises(ProtocolError) as ctx:
            driver.run_interactive_scan()
        self.assertIn("scan failed", str(ctx.exception))

    def test_end_of_output_raises(self) -> None:
        driver = self._driver("read -r cmd\necho OK\nexit 0\n")

        with self.assertRaises(ProtocolError) as ctx:
            driver.run_interactive_scan()
        self.assertIn("End of wpa_cli output", str(ctx.exception))

    def test_silent_daemon_times_out(self) -> None:
        driver = self._driver("read -r cmd\necho OK\nexec sleep 30\n", scan_timeout=0.5)

        started = time.monotonic()
        with self.assertRaises(ProtocolError) as ctx:
            driver.run_interactive_scan()
        self.assertIn("within", str(ctx.exception))
        self.assertLess(time.monotonic() - started, 10)

    def test_missing_binary_raises(self) -> None:
        config = Config(
            library=self.temp_dir / "lib.toml",
            wpa_conf=self.temp_dir / "wpa.conf",
            wpa_cli=self.temp_dir / "absent",
        )

        with self.assertRaises(CommandIOError):
            WpaCli(config).run_interactive_scan()
        with self.assertRaises(CommandIOError):
            WpaCli(config).query_text("scan_results")

    def test_query_text_passes_subcommand(self) -> None:
        driver = self._driver("printf 'got %s %s\\n' \"$5\" \"$6\"\n")

        self.assertEqual(driver.query_text("select_network", "3"), "got select_network 3\n")

    def test_run_command_tolerates_nonzero_exit(self) -> None:
        driver = self._driver("echo FAIL\nexit 3\n")

        with self.assertLogs("wifi_chooser.wpa_cli", level=logging.WARNING):
            result = driver.run_command("reconfigure")
        self.assertEqual(result.returncode, 3)
        self.assertEqual(result.stdout.strip(), "FAIL")


if __name__ == "__main__":
    unittest.main()
