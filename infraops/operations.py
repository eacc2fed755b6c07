"""External operation boundary.

Every process spawn and HTTP download made by infraops goes through
:class:`Operations`. Capability clients (k3d, kubectl, helm, git) only build
argv lists and interpret results; they never touch ``subprocess`` directly.
"""
from __future__ import annotations

import logging
import os
import shlex
import shutil
import signal
import subprocess
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional

import requests

from .errors import ExternalOperationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommandResult:
    command: List[str]
    returncode: Optional[int]
    stdout: str
    stderr: str
    duration: float = 0.0
    timed_out: bool = False

    @property
    def ok(self) -> bool:
        return self.returncode == 0 and not self.timed_out

    @property
    def display(self) -> str:
        return " ".join(shlex.quote(part) for part in self.command)


CommandRunner = Callable[..., CommandResult]

# seconds to wait for output readers after a timed out process group is killed
READER_GRACE = 5.0


def _kill_group(proc: subprocess.Popen) -> None:
    try:
        os.killpg(proc.pid, signal.SIGKILL)
    except ProcessLookupError:
        pass


def stream_command(
    cmd: List[str],
    *,
    input: Optional[str] = None,
    timeout: Optional[float] = None,
    show: bool = False,
    env: Optional[dict] = None,
) -> CommandResult:
    """Run ``cmd`` to completion, capturing (and optionally echoing) its output."""
    start = time.time()
    stdout_buf: List[str] = []
    stderr_buf: List[str] = []
    try:
        proc = subprocess.Popen(
            cmd,
            stdin=subprocess.PIPE if input is not None else subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            bufsize=1,  # line-buffered
            env=env,
            start_new_session=True,  # own process group so a timeout reaches grandchildren
        )
    except FileNotFoundError:
        return CommandResult(
            command=list(cmd),
            returncode=127,
            stdout="",
            stderr=f"command not found: {cmd[0]}",
            duration=time.time() - start,
        )

    def _read_stream(stream, buf: List[str]) -> None:
        try:
            for line in iter(stream.readline, ""):
                buf.append(line)
                if show:
                    print(line, end="", flush=True)
        finally:
            stream.close()

    readers = [
        threading.Thread(target=_read_stream, args=(proc.stdout, stdout_buf), daemon=True),
        threading.Thread(target=_read_stream, args=(proc.stderr, stderr_buf), daemon=True),
    ]
    for t in readers:
        t.start()

    if input is not None and proc.stdin is not None:
        try:
            proc.stdin.write(input)
        except BrokenPipeError:
            pass
        finally:
            proc.stdin.close()

    timed_out = False
    try:
        proc.wait(timeout=timeout)
    except subprocess.TimeoutExpired:
        timed_out = True
        _kill_group(proc)
        proc.wait()
    except KeyboardInterrupt:
        _kill_group(proc)
        raise

    # descendants that outlive the main process keep the pipes open
    deadline = None if timeout is None else start + timeout
    for t in readers:
        t.join(None if deadline is None else max(deadline - time.time(), 0.0))
    if any(t.is_alive() for t in readers):
        timed_out = True
        _kill_group(proc)
        for t in readers:
            t.join(READER_GRACE)

    return CommandResult(
        command=list(cmd),
        returncode=proc.returncode,
        stdout="".join(stdout_buf).strip(),
        stderr="".join(stderr_buf).strip(),
        duration=time.time() - start,
        timed_out=timed_out,
    )


class Operations:
    """Pass-through executor for external commands, lookups and downloads.

    Args:
        runner: callable with the signature of :func:`stream_command`; tests
            inject a fake here.
        show: echo command output while it runs.
        which: replacement for :func:`shutil.which`.
        session: ``requests.Session`` used for downloads.
    """

    def __init__(
        self,
        runner: Optional[CommandRunner] = None,
        show: bool = False,
        which: Optional[Callable[..., Optional[str]]] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._runner = runner or stream_command
        self._which = which or shutil.which
        self._session = session
        self.show = show
        self.history: List[str] = []

    def execute(self, cmd: List[str], *, timeout: Optional[float] = None, input: Optional[str] = None) -> CommandResult:
        """Run a command and return its result without raising on failure."""
        display = " ".join(shlex.quote(c) for c in cmd)
        self.history.append(display)
        logger.debug(f"exec: {display}")
        result = self._runner(cmd, input=input, timeout=timeout, show=self.show)
        logger.debug(f"exit={result.returncode} timed_out={result.timed_out} duration={result.duration:.2f}s")
        return result

    def run(
        self,
        cmd: List[str],
        *,
        timeout: Optional[float] = None,
        input: Optional[str] = None,
        error_message: Optional[str] = None,
    ) -> CommandResult:
        """Run a command, raising :class:`ExternalOperationError` unless it succeeds."""
        result = self.execute(cmd, timeout=timeout, input=input)
        if not result.ok:
            raise ExternalOperationError(error_message or f"Command failed: {cmd[0]}", result)
        return result

    def which(self, tool: str, path: Optional[str] = None) -> Optional[str]:
        self.history.append(f"which {tool}")
        return self._which(tool, path=path) if path else self._which(tool)

    def download(self, url: str, dest: Path, *, timeout: float = 60.0, mode: int = 0o755) -> Path:
        """Fetch ``url`` into ``dest`` and apply ``mode``."""
        self.history.append(f"GET {url}")
        logger.debug(f"download: {url} -> {dest}")
        dest = Path(dest)
        dest.parent.mkdir(parents=True, exist_ok=True)
        tmp = dest.with_name(dest.name + ".part")
        session = self._session or requests.Session()
        try:
            with session.get(url, stream=True, timeout=timeout, allow_redirects=True) as resp:
                resp.raise_for_status()
                with open(tmp, "wb") as fh:
                    for chunk in resp.iter_content(chunk_size=65536):
                        if chunk:
                            fh.write(chunk)
        except requests.RequestException as e:
            tmp.unlink(missing_ok=True)
            status = getattr(getattr(e, "response", None), "status_code", None)
            result = CommandResult(command=["GET", url], returncode=status or 1, stdout="", stderr=str(e))
            raise ExternalOperationError(f"Download failed: {url}", result) from e
        os.replace(tmp, dest)
        dest.chmod(mode)
        return dest
