"""Background HTTP server that serves the generated site while PDFs are rendered."""

from __future__ import annotations

import logging
import socket
import subprocess
import sys
import threading
import time
from enum import Enum
from pathlib import Path
from typing import IO

import httpx

from docsbuild.config.models import ServerConfig
from docsbuild.errors import ServerStartError

logger = logging.getLogger(__name__)


class ServerState(str, Enum):
    not_started = "not_started"
    starting = "starting"
    ready = "ready"
    stopped = "stopped"


def default_server_command() -> list[str]:
    return [
        sys.executable, "-m", "http.server", "{port}",
        "--bind", "{host}",
        "--directory", "{site_dir}",
    ]


def port_in_use(host: str, port: int) -> bool:
    """Return True if something already accepts connections on host:port."""
    try:
        with socket.create_connection((host, port), timeout=0.5):
            return True
    except OSError:
        return False


class ServerController:
    """Starts a local web server in a background process and waits until it answers.

    Readiness is detected by polling the site URL over HTTP. If a
    ``ready_line`` is configured, seeing it in the server output also counts.
    The server log goes to ``log_path``. Use as a context manager to make
    sure the process is stopped on every exit path::

        with ServerController(config.server, site_dir) as server:
            render(server.base_url)
    """

    def __init__(
        self,
        config: ServerConfig,
        site_dir: Path,
        log_path: Path | None = None,
    ) -> None:
        self.config = config
        self.site_dir = Path(site_dir)
        self.log_path = Path(log_path) if log_path else None
        self._state = ServerState.not_started
        self._process: subprocess.Popen[str] | None = None
        self._reader: threading.Thread | None = None
        self._log_file: IO[str] | None = None
        self._ready_line_seen = threading.Event()
        self._log_lock = threading.Lock()

    @property
    def state(self) -> ServerState:
        return self._state

    @property
    def base_url(self) -> str:
        return self.config.base_url

    def command(self) -> list[str]:
        """The server command line with its ``{port}``, ``{host}``, ``{site_dir}``
        and ``{context_path}`` placeholders filled in.
        """
        template = self.config.command or default_server_command()
        values = {
            "port": self.config.port,
            "host": self.config.host,
            "site_dir": self.site_dir,
            "context_path": self.config.context_path,
        }
        return [part.format(**values) for part in template]

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Launch the server and block until it is ready.

        Raises ServerStartError if the server is already running, the port
        is taken, or it does not become ready within ``startup_timeout``.
        """
        if self._state in (ServerState.starting, ServerState.ready):
            raise ServerStartError(
                f"Server already running on port {self.config.port}"
            )
        if port_in_use(self.config.host, self.config.port):
            raise ServerStartError(f"Port {self.config.port} is already in use")

        command = self.command()
        self._state = ServerState.starting
        self._ready_line_seen.clear()
        logger.info("Starting server: %s", " ".join(command))

        if self.log_path is not None:
            self.log_path.parent.mkdir(parents=True, exist_ok=True)
            self._log_file = open(self.log_path, "w", encoding="utf-8")
        try:
            self._process = subprocess.Popen(
                command,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                bufsize=1,
            )
        except OSError as e:
            self._close_log()
            self._state = ServerState.stopped
            raise ServerStartError(f"Could not launch server: {e}") from e

        self._reader = threading.Thread(
            target=self._pump_output, args=(self._process.stdout,), daemon=True
        )
        self._reader.start()

        try:
            self._wait_until_ready(self._process)
        except BaseException:
            # __exit__ does not run when start() raises, including on Ctrl-C
            self._shutdown()
            raise
        self._state = ServerState.ready
        logger.info("Server ready at %s", self.base_url)

    def stop(self) -> None:
        """Stop the server. Does nothing if it was never started or is already stopped."""
        if self._state in (ServerState.not_started, ServerState.stopped):
            return
        self._shutdown()
        logger.info("Server stopped")

    def __enter__(self) -> ServerController:
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _wait_until_ready(self, process: subprocess.Popen[str]) -> None:
        timeout = self.config.startup_timeout
        deadline = time.monotonic() + timeout
        with httpx.Client(timeout=self.config.poll_interval * 4) as client:
            while True:
                if self._ready_line_seen.is_set() or self._probe(client):
                    return
                returncode = process.poll()
                if returncode is not None:
                    raise ServerStartError(
                        f"Server exited with status {returncode} before becoming ready"
                    )
                if time.monotonic() >= deadline:
                    raise ServerStartError(f"Server not ready after {timeout:g}s")
                self._ready_line_seen.wait(self.config.poll_interval)

    def _probe(self, client: httpx.Client) -> bool:
        try:
            client.get(f"{self.base_url}/")
        except httpx.TransportError:
            return False
        return True

    def _pump_output(self, stream: IO[str] | None) -> None:
        if stream is None:
            return
        ready_line = self.config.ready_line
        for line in stream:
            with self._log_lock:
                if self._log_file is not None:
                    self._log_file.write(line)
                    self._log_file.flush()
            if ready_line and ready_line in line:
                self._ready_line_seen.set()

    def _shutdown(self) -> None:
        if self.config.stop_command:
            self._run_stop_command(self.config.stop_command)

        process = self._process
        if process is not None and process.poll() is None:
            process.terminate()
            try:
                process.wait(timeout=self.config.shutdown_timeout)
            except subprocess.TimeoutExpired:
                logger.warning("Server did not exit in time, killing it")
                process.kill()
                process.wait()

        if self._reader is not None:
            self._reader.join(timeout=self.config.shutdown_timeout)
            if self._reader.is_alive():
                # a grandchild still holds the pipe open
                logger.warning("Server output still open after shutdown, detaching reader")
            self._reader = None
        self._close_log()
        self._process = None
        self._state = ServerState.stopped

    def _run_stop_command(self, command: list[str]) -> None:
        try:
            result = subprocess.run(
                command,
                capture_output=True,
                text=True,
                timeout=self.config.shutdown_timeout,
            )
        except (FileNotFoundError, subprocess.TimeoutExpired) as e:
            logger.warning("Stop command failed: %s", e)
            return
        if result.returncode != 0:
            logger.warning(
                "Stop command exited %d: %s", result.returncode, result.stderr[:200]
            )

    def _close_log(self) -> None:
        with self._log_lock:
            if self._log_file is not None:
                self._log_file.close()
                self._log_file = None
