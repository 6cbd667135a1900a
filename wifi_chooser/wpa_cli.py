"""Driver for wpa_cli, the control client of wpa_supplicant.

Two ways of talking to it are used: an interactive session where commands
are written to stdin and event lines are read back (needed for ``scan``,
whose completion is only announced as an event), and one-shot invocations
with the command on the argument list.
"""

from __future__ import annotations

import logging
import queue
import subprocess
import threading
import time
from typing import IO, Union

from wifi_chooser.core import Config
from wifi_chooser.errors import CommandIOError, ProtocolError
from wifi_chooser.system import CommandResult, run

logger = logging.getLogger(__name__)

SCAN_RESULTS_EVENT = "CTRL-EVENT-SCAN-RESULTS"
SCAN_FAILED_EVENT = "CTRL-EVENT-SCAN-FAILED"
# Seconds allowed for wpa_cli to exit after "quit".
QUIT_GRACE_SECONDS = 5.0

_Line = Union[str, Exception, None]


def _pump_lines(stream: IO[str], lines: "queue.Queue[_Line]") -> None:
    try:
        for line in stream:
            lines.put(line)
    except (OSError, ValueError) as exc:
        lines.put(exc)
    finally:
        lines.put(None)


def _reap(process: subprocess.Popen) -> None:
    if process.poll() is None:
        process.kill()
    process.wait()


class WpaCli:
    def __init__(self, config: Config) -> None:
        self._config = config

    def base_command(self) -> list[str]:
        return [
            str(self._config.wpa_cli),
            "-i",
            self._config.interface,
            "-p",
            str(self._config.wpa_socket),
        ]

    def run_interactive_scan(self) -> None:
        """Trigger a scan and block until wpa_supplicant reports it finished.

        Raises ProtocolError if the scan fails, if wpa_cli stops talking
        before announcing a result, or if ``scan_timeout`` passes first.
        The wpa_cli process is gone by the time this returns or raises.
        """
        command = self.base_command()
        try:
            process = subprocess.Popen(
                command,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,
                text=True,
                encoding="utf-8",
                errors="replace",
                bufsize=1,
            )
        except OSError as exc:
            raise CommandIOError(f"Unable to execute {command[0]}: {exc}") from exc

        lines: "queue.Queue[_Line]" = queue.Queue()
        reader = threading.Thread(
            target=_pump_lines,
            args=(process.stdout, lines),
            name="wpa-cli-reader",
            daemon=True,
        )
        reader.start()
        try:
            self._send(process, "scan")
            self._await_scan(lines)
            self._send(process, "quit")
            try:
                process.wait(timeout=QUIT_GRACE_SECONDS)
            except subprocess.TimeoutExpired:
                logger.warning("wpa_cli did not exit after quit; killing it.")
        finally:
            _reap(process)
            try:
                process.stdin.close()
            except OSError:
                pass
            reader.join(timeout=1.0)
            # Closing stdout under a blocked reader would deadlock on its buffer lock.
            if not reader.is_alive():
                process.stdout.close()

    def _send(self, process: subprocess.Popen, command: str) -> None:
        logger.debug("wpa_cli <- %s", command)
        try:
            process.stdin.write(command + "\n")
            process.stdin.flush()
        except (OSError, ValueError) as exc:
            raise ProtocolError(f"Error writing to wpa_cli subprocess: {exc}") from exc

    def _await_scan(self, lines: "queue.Queue[_Line]") -> None:
        timeout = self._config.scan_timeout
        deadline = time.monotonic() + timeout
        while True:
            remaining = deadline - time.monotonic()
            try:
                if remaining <= 0:
                    raise queue.Empty
                line = lines.get(timeout=remaining)
            except queue.Empty:
                raise ProtocolError(f"wpa_cli did not finish scanning within {timeout:g} seconds.") from None
            if line is None:
                raise ProtocolError("End of wpa_cli output unexpected.")
            if isinstance(line, Exception):
                raise ProtocolError(f"Error reading wpa_cli output: {line}") from line
            logger.debug("wpa_cli -> %s", line.rstrip())
            if SCAN_RESULTS_EVENT in line:
                return
            if SCAN_FAILED_EVENT in line:
                raise ProtocolError("wpa_cli scan failed.")

    def query_text(self, *args: str) -> str:
        """Return what wpa_cli prints for a one-shot command such as scan_results."""
        command = self.base_command() + list(args)
        return run(command, timeout=self._config.scan_timeout).stdout

    def run_command(self, *args: str) -> CommandResult:
        """Issue a one-shot command; its exit status is returned, not checked."""
        command = self.base_command() + list(args)
        result = run(command, timeout=self._config.scan_timeout, strict=False)
        if result.returncode != 0:
            logger.warning(
                "wpa_cli %s exited with status %d: %s",
                " ".join(args),
                result.returncode,
                result.stdout.strip() or "no output",
            )
        return result
