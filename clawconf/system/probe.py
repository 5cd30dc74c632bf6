"""Low-level, side-effect-free probes: open ports and executable versions."""

import logging
import re
import shutil
import socket
import subprocess
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_PORT_TIMEOUT = 0.5
DEFAULT_COMMAND_TIMEOUT = 5.0

# Matches "0.5.7", "v1.2", "0.6.3.post1", "1.0.0-rc1"
VERSION_PATTERN = re.compile(r"\bv?(\d+\.\d+(?:\.\d+)?(?:[-+.][0-9A-Za-z]+)*)\b")


def port_open(host: str, port: int, timeout: float = DEFAULT_PORT_TIMEOUT) -> bool:
    """Return True if something accepts TCP connections on host:port."""
    try:
        with socket.create_connection((host, port), timeout=timeout):
            return True
    except (OSError, ValueError, OverflowError) as e:
        logger.debug(f"Port {host}:{port} not open: {e}")
        return False


def find_executable(name: str, extra_paths: list[Path] | None = None) -> str | None:
    """Find an executable on PATH, then in well-known install locations."""
    found = shutil.which(name)
    if found:
        return found

    for candidate in extra_paths or []:
        if candidate.is_file():
            return str(candidate)

    return None


def run_command(args: list[str], timeout: float = DEFAULT_COMMAND_TIMEOUT) -> str | None:
    """
    Run a command and return its stdout.

    Returns None when the program is missing, times out, or exits non-zero.
    The child is killed on timeout by subprocess.run. Undecodable output
    bytes are replaced rather than raised.
    """
    try:
        result = subprocess.run(
            args,
            capture_output=True,
            text=True,
            errors="replace",
            timeout=timeout,
            check=True,
        )
    except FileNotFoundError:
        logger.debug(f"Command not found: {args[0]}")
        return None
    except subprocess.TimeoutExpired:
        logger.warning(f"Command timed out after {timeout}s: {' '.join(args)}")
        return None
    except subprocess.CalledProcessError as e:
        logger.debug(f"Command {' '.join(args)} exited with {e.returncode}")
        return None
    except OSError as e:
        logger.debug(f"Failed to run {args[0]}: {e}")
        return None

    return result.stdout


def parse_version(output: str) -> str | None:
    """Extract the version token from the first line that carries one."""
    for line in output.splitlines():
        match = VERSION_PATTERN.search(line)
        if match:
            return match.group(1)
    return None


def executable_version(
    path_or_name: str,
    version_flag: str = "--version",
    timeout: float = DEFAULT_COMMAND_TIMEOUT,
) -> str | None:
    """Run ``<exe> <flag>`` and return the version it reports, if any."""
    output = run_command([path_or_name, version_flag], timeout=timeout)
    if output is None:
        return None

    version = parse_version(output)
    if version is None:
        logger.debug(f"No version found in output of {path_or_name} {version_flag}")
    return version
