"""Detection of locally installed LLM runtimes (Ollama, LM Studio, vLLM)."""

import logging
import sys
import time
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeoutError
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable

from clawconf.system.probe import (
    DEFAULT_COMMAND_TIMEOUT,
    DEFAULT_PORT_TIMEOUT,
    executable_version,
    find_executable,
    parse_version,
    port_open,
    run_command,
)

logger = logging.getLogger(__name__)

LOCALHOST = "127.0.0.1"

# Overall wall-clock budget for one detection pass
DEFAULT_DETECT_DEADLINE = 10.0


class Runtime(Enum):
    """Local runtimes the detector knows about."""

    OLLAMA = "ollama"  # chat server
    LM_STUDIO = "lm_studio"  # desktop app with `lms` CLI
    VLLM = "vllm"  # high-throughput server


DEFAULT_PORTS: dict[Runtime, int] = {
    Runtime.OLLAMA: 11434,
    Runtime.LM_STUDIO: 1234,
    Runtime.VLLM: 8000,
}


@dataclass
class RuntimeStatus:
    """Installation and running state of one runtime."""

    installed: bool = False
    running: bool = False
    version: str | None = None
    path: str | None = None

    def __post_init__(self) -> None:
        # Something serving on the runtime's port means it is present,
        # even when no executable could be located.
        if self.running:
            self.installed = True

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"installed": self.installed, "running": self.running}
        if self.version is not None:
            data["version"] = self.version
        if self.path is not None:
            data["path"] = self.path
        return data


@dataclass
class DetectionResult:
    """Status of every known runtime from a single detection pass."""

    statuses: dict[Runtime, RuntimeStatus] = field(default_factory=dict)

    def __post_init__(self) -> None:
        for runtime in Runtime:
            self.statuses.setdefault(runtime, RuntimeStatus())

    def __getitem__(self, runtime: Runtime) -> RuntimeStatus:
        return self.statuses[runtime]

    def to_dict(self) -> dict[str, Any]:
        return {runtime.value: self.statuses[runtime].to_dict() for runtime in Runtime}


def lms_path() -> Path:
    """Well-known location of the LM Studio CLI."""
    name = "lms.exe" if sys.platform == "win32" else "lms"
    return Path.home() / ".lmstudio" / "bin" / name


def python_executables() -> list[str]:
    return ["python3", "python"] if sys.platform != "win32" else ["python", "py"]


class RuntimeDetector:
    """Detects which local LLM runtimes are installed and running."""

    def __init__(
        self,
        host: str = LOCALHOST,
        port_timeout: float = DEFAULT_PORT_TIMEOUT,
        command_timeout: float = DEFAULT_COMMAND_TIMEOUT,
        deadline: float = DEFAULT_DETECT_DEADLINE,
        ports: dict[Runtime, int] | None = None,
    ) -> None:
        self.host = host
        self.port_timeout = port_timeout
        self.command_timeout = command_timeout
        self.deadline = deadline
        self.ports = {**DEFAULT_PORTS, **(ports or {})}

    def detect(self) -> DetectionResult:
        """Run every runtime check concurrently and collect the results."""
        checks: dict[Runtime, Callable[[], RuntimeStatus]] = {
            Runtime.OLLAMA: self.detect_ollama,
            Runtime.LM_STUDIO: self.detect_lm_studio,
            Runtime.VLLM: self.detect_vllm,
        }

        statuses: dict[Runtime, RuntimeStatus] = {}
        end = time.monotonic() + self.deadline
        executor = ThreadPoolExecutor(max_workers=len(checks), thread_name_prefix="detect")
        try:
            futures = {runtime: executor.submit(check) for runtime, check in checks.items()}
            for runtime, future in futures.items():
                try:
                    statuses[runtime] = future.result(timeout=max(0.0, end - time.monotonic()))
                except FutureTimeoutError:
                    logger.warning(f"Detection of {runtime.value} timed out after {self.deadline}s")
                    statuses[runtime] = RuntimeStatus()
                except Exception as e:
                    logger.warning(f"Detection of {runtime.value} failed: {e}")
                    statuses[runtime] = RuntimeStatus()
        finally:
            # Do not wait for a stuck check; its own timeouts will end it.
            executor.shutdown(wait=False, cancel_futures=True)

        return DetectionResult(statuses=statuses)

    def _is_running(self, runtime: Runtime) -> bool:
        return port_open(self.host, self.ports[runtime], timeout=self.port_timeout)

    def detect_ollama(self) -> RuntimeStatus:
        path = find_executable("ollama")
        version = executable_version(path, timeout=self.command_timeout) if path else None
        return RuntimeStatus(
            installed=path is not None,
            running=self._is_running(Runtime.OLLAMA),
            version=version,
            path=path,
        )

    def detect_lm_studio(self) -> RuntimeStatus:
        path = find_executable("lms", extra_paths=[lms_path()])
        version = executable_version(path, timeout=self.command_timeout) if path else None
        return RuntimeStatus(
            installed=path is not None,
            running=self._is_running(Runtime.LM_STUDIO),
            version=version,
            path=path,
        )

    def detect_vllm(self) -> RuntimeStatus:
        path = find_executable("vllm")
        if path:
            installed = True
            version = executable_version(path, timeout=self.command_timeout)
        else:
            installed, version = self._vllm_module_version()

        return RuntimeStatus(
            installed=installed,
            running=self._is_running(Runtime.VLLM),
            version=version,
            path=path,
        )

    def _vllm_module_version(self) -> tuple[bool, str | None]:
        """Check whether the vllm Python package is importable."""
        snippet = "import vllm; print(getattr(vllm, '__version__', 'unknown'))"
        for python in python_executables():
            output = run_command([python, "-c", snippet], timeout=self.command_timeout)
            if output is not None:
                return True, parse_version(output)
        return False, None
