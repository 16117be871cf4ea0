"""Launches an external sampling process and streams its output by line."""

from __future__ import annotations

import logging
import os
import subprocess
import threading
from dataclasses import dataclass, field
from typing import IO, Callable

import psutil

logger = logging.getLogger(__name__)


@dataclass
class LaunchHandle:
    """A running child process and the threads reading its output."""

    argv: list[str]
    process: subprocess.Popen
    threads: list[threading.Thread] = field(default_factory=list)

    @property
    def pid(self) -> int:
        return self.process.pid

    @property
    def command(self) -> str:
        return " ".join(self.argv)


def _read_lines(stream: IO[str], on_line: Callable[[str], None], name: str) -> None:
    """Deliver each line of *stream* to *on_line* until EOF."""
    for raw in stream:
        line = raw.rstrip("\r\n")
        try:
            on_line(line)
        except Exception:
            logger.exception("Line handler failed for %s line %r", name, line)


class ProcessLauncher:
    """Starts child processes and delivers their stdout one line at a time.

    stdout lines go to the callback given to :meth:`launch`, in arrival
    order, on a dedicated daemon thread. stderr lines are logged.
    """

    def __init__(self, timeout_seconds: float = 5.0) -> None:
        self._timeout = timeout_seconds

    def launch(
        self,
        argv: list[str],
        env: dict[str, str],
        on_line: Callable[[str], None],
    ) -> LaunchHandle:
        """Start *argv* with *env* layered over the current environment.

        Raises :class:`OSError` if the executable cannot be started.
        """
        proc_env = dict(os.environ)
        proc_env.update(env)

        proc = subprocess.Popen(
            argv,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            env=proc_env,
            text=True,
            bufsize=1,
        )
        handle = LaunchHandle(argv=list(argv), process=proc)

        def _log_stderr(line: str) -> None:
            logger.warning("%s: %s", argv[0], line)

        for stream, callback, name in (
            (proc.stdout, on_line, "stdout"),
            (proc.stderr, _log_stderr, "stderr"),
        ):
            thread = threading.Thread(
                target=_read_lines,
                args=(stream, callback, name),
                name=f"{os.path.basename(argv[0])}-{name}",
                daemon=True,
            )
            thread.start()
            handle.threads.append(thread)

        logger.info("Launched %r (pid=%d)", handle.command, proc.pid)
        return handle

    def shutdown(self, handle: LaunchHandle, force: bool = False) -> None:
        """Terminate the child and its descendants, then wait for output to end.

        With *force* the processes are killed immediately; otherwise they get
        ``timeout_seconds`` to exit after SIGTERM before being killed.
        The child itself is reaped through its ``Popen`` so its exit code
        is kept.
        """
        try:
            descendants = psutil.Process(handle.pid).children(recursive=True)
        except (psutil.NoSuchProcess, psutil.AccessDenied):
            descendants = []

        for proc in descendants:
            try:
                if force:
                    proc.kill()
                else:
                    proc.terminate()
            except (psutil.NoSuchProcess, psutil.AccessDenied):
                continue

        if handle.process.poll() is None:
            if force:
                handle.process.kill()
            else:
                handle.process.terminate()

        _, alive = psutil.wait_procs(descendants, timeout=self._timeout)
        for proc in alive:
            logger.warning("Process %d did not exit in %.1fs, killing", proc.pid, self._timeout)
            try:
                proc.kill()
            except (psutil.NoSuchProcess, psutil.AccessDenied):
                continue

        try:
            handle.process.wait(timeout=self._timeout)
        except subprocess.TimeoutExpired:
            logger.warning("Process %d did not exit in %.1fs, killing", handle.pid, self._timeout)
            handle.process.kill()
            try:
                handle.process.wait(timeout=self._timeout)
            except subprocess.TimeoutExpired:
                logger.error("Process %d is still running after shutdown", handle.pid)

        for thread in handle.threads:
            thread.join(timeout=self._timeout)

        if not any(thread.is_alive() for thread in handle.threads):
            for stream in (handle.process.stdout, handle.process.stderr):
                if stream is not None:
                    stream.close()

        logger.info("Process %d exited with code %s", handle.pid, handle.process.returncode)
