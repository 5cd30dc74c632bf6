"""Listing of models available on local runtimes."""

import json
import logging
from typing import Any

import httpx

from clawconf.system.probe import DEFAULT_COMMAND_TIMEOUT, find_executable, run_command
from clawconf.system.runtimes import DEFAULT_PORTS, LOCALHOST, Runtime, lms_path

logger = logging.getLogger(__name__)

DEFAULT_HTTP_TIMEOUT = 2.0

OLLAMA_TAGS_PATH = "/api/tags"

# Column headings printed by `lms ls`
LMS_HEADER_WORDS = frozenset(
    {"PARAMS", "ARCH", "ARCHITECTURE", "SIZE", "NAME", "MODEL", "TYPE", "PUBLISHER", "DEVICE"}
)

SEPARATOR_CHARS = set("-=_─━═│|+ \t")

# Summary and section lines that precede the tables
LMS_SECTION_PREFIXES = ("you have ", "llms (", "embedding models")


def parse_ollama_tags(body: str) -> list[str]:
    """
    Parse the Ollama tags response into model names.

    Accepts ``{"models": [{"name": ...}, ...]}`` or a bare list of records.
    Anything malformed yields an empty list.
    """
    try:
        data = json.loads(body)
    except (json.JSONDecodeError, TypeError):
        logger.debug("Ollama tags response is not valid JSON")
        return []

    records: Any = data.get("models") if isinstance(data, dict) else data
    if not isinstance(records, list):
        return []

    names: list[str] = []
    for record in records:
        if isinstance(record, dict):
            name = record.get("name") or record.get("model")
        elif isinstance(record, str):
            name = record
        else:
            name = None
        if isinstance(name, str) and name.strip():
            names.append(name.strip())
    return names


def _is_lms_header(line: str) -> bool:
    stripped = line.strip()
    if stripped.lower().startswith(LMS_SECTION_PREFIXES) or stripped.endswith(":"):
        return True
    if set(stripped) <= SEPARATOR_CHARS:
        return True
    return any(token in LMS_HEADER_WORDS for token in stripped.split())


def parse_lms_ls(output: str) -> list[str]:
    """
    Parse ``lms ls`` tabular output into model identifiers.

    Header, summary and separator lines are skipped; the first
    whitespace-delimited token of each remaining line is the model.
    """
    models: list[str] = []
    for line in output.splitlines():
        if not line.strip() or _is_lms_header(line):
            continue
        models.append(line.split()[0])
    return models


class ModelLister:
    """Fetches locally available model identifiers from runtimes that expose them."""

    def __init__(
        self,
        host: str = LOCALHOST,
        http_timeout: float = DEFAULT_HTTP_TIMEOUT,
        command_timeout: float = DEFAULT_COMMAND_TIMEOUT,
        client: httpx.Client | None = None,
    ) -> None:
        self.host = host
        self.http_timeout = http_timeout
        self.command_timeout = command_timeout
        self._client = client

    def list_models(self, runtime: Runtime) -> list[str] | None:
        """
        List models for a runtime.

        Returns None when the runtime has no listing interface, so callers
        can tell "unknown" apart from "no models".
        """
        if runtime == Runtime.OLLAMA:
            return self.ollama_models()
        if runtime == Runtime.LM_STUDIO:
            return self.lm_studio_models()
        return None

    def ollama_models(self) -> list[str]:
        url = f"http://{self.host}:{DEFAULT_PORTS[Runtime.OLLAMA]}{OLLAMA_TAGS_PATH}"
        try:
            if self._client is not None:
                response = self._client.get(url, timeout=self.http_timeout)
            else:
                response = httpx.get(url, timeout=self.http_timeout)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.debug(f"Could not list Ollama models: {e}")
            return []

        return parse_ollama_tags(response.text)

    def lm_studio_models(self) -> list[str]:
        cmd = find_executable("lms", extra_paths=[lms_path()]) or "lms"
        output = run_command([cmd, "ls"], timeout=self.command_timeout)
        if output is None:
            return []
        return parse_lms_ls(output)
