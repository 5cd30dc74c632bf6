"""Optional integration with the llmfit hardware advisor.

See https://github.com/AlexsJones/llmfit. Everything here is best effort:
a missing binary, a failing run or unparsable output all mean "no data".
"""

import json
import logging
import math
from dataclasses import dataclass, field
from typing import Any

from clawconf.system.probe import find_executable, run_command

logger = logging.getLogger(__name__)

DEFAULT_ADVISOR = "llmfit"
DEFAULT_ADVISOR_TIMEOUT = 15.0
DEFAULT_RECOMMENDATION_LIMIT = 10
MAX_RECOMMENDATION_LIMIT = 20


def _first(data: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return None


def _as_float(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        return None
    try:
        number = float(value)
    except (ValueError, OverflowError):
        return None
    # NaN and Infinity are valid JSON for json.loads
    return number if math.isfinite(number) else None


def _as_int(value: Any) -> int | None:
    number = _as_float(value)
    return int(number) if number is not None else None


def _as_str(value: Any) -> str | None:
    return str(value) if value is not None and not isinstance(value, (dict, list)) else None


@dataclass
class SystemDescription:
    """Hardware summary as reported by the advisor."""

    total_ram_gb: float | None = None
    available_ram_gb: float | None = None
    cpu_cores: int | None = None
    gpu_name: str | None = None
    vram_gb: float | None = None
    backend: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SystemDescription":
        return cls(
            total_ram_gb=_as_float(_first(data, "total_ram_gb", "total_ram")),
            available_ram_gb=_as_float(_first(data, "available_ram_gb", "available_ram")),
            cpu_cores=_as_int(data.get("cpu_cores")),
            gpu_name=_as_str(data.get("gpu_name")),
            vram_gb=_as_float(data.get("vram_gb")),
            backend=_as_str(data.get("backend")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_ram_gb": self.total_ram_gb,
            "available_ram_gb": self.available_ram_gb,
            "cpu_cores": self.cpu_cores,
            "gpu_name": self.gpu_name,
            "vram_gb": self.vram_gb,
            "backend": self.backend,
        }


@dataclass
class Recommendation:
    """One model recommendation, in the advisor's ranking order."""

    name: str | None = None
    params_b: float | None = None
    fit: str | None = None
    use_case: str | None = None
    score: float | None = None
    mem_gb: float | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Recommendation":
        return cls(
            name=_as_str(data.get("name")),
            params_b=_as_float(_first(data, "params_b", "params")),
            fit=_as_str(data.get("fit")),
            use_case=_as_str(data.get("use_case")),
            score=_as_float(data.get("score")),
            mem_gb=_as_float(data.get("mem_gb")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "params_b": self.params_b,
            "fit": self.fit,
            "use_case": self.use_case,
            "score": self.score,
            "mem_gb": self.mem_gb,
        }


@dataclass
class HardwareFit:
    """Advisor output: system description plus ranked recommendations."""

    system: SystemDescription
    recommendations: list[Recommendation] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "system": self.system.to_dict(),
            "recommendations": [r.to_dict() for r in self.recommendations],
        }


def parse_system(output: str) -> SystemDescription | None:
    try:
        data = json.loads(output)
    except json.JSONDecodeError:
        logger.debug("Advisor system output is not valid JSON")
        return None
    if isinstance(data, dict) and isinstance(data.get("system"), dict):
        data = data["system"]
    if not isinstance(data, dict):
        return None
    return SystemDescription.from_dict(data)


def parse_recommendations(output: str) -> list[Recommendation]:
    try:
        data = json.loads(output)
    except json.JSONDecodeError:
        logger.debug("Advisor recommendation output is not valid JSON")
        return []
    if isinstance(data, dict):
        data = _first(data, "models", "recommendations")
    if not isinstance(data, list):
        return []
    return [Recommendation.from_dict(item) for item in data if isinstance(item, dict)]


class HardwareFitAdapter:
    """Runs the external advisor program if it is on PATH."""

    def __init__(
        self,
        command: str = DEFAULT_ADVISOR,
        timeout: float = DEFAULT_ADVISOR_TIMEOUT,
    ) -> None:
        self.command = command
        self.timeout = timeout

    def _resolve(self) -> str | None:
        path = find_executable(self.command)
        if path is None:
            logger.debug(f"Hardware advisor '{self.command}' not found on PATH")
        return path

    def get_system(self) -> SystemDescription | None:
        path = self._resolve()
        if path is None:
            return None
        output = run_command([path, "--json", "system"], timeout=self.timeout)
        return parse_system(output) if output is not None else None

    def get_recommendations(self, limit: int = DEFAULT_RECOMMENDATION_LIMIT) -> list[Recommendation]:
        path = self._resolve()
        if path is None:
            return []
        limit = max(1, min(limit, MAX_RECOMMENDATION_LIMIT))
        output = run_command(
            [path, "recommend", "--json", "--limit", str(limit)],
            timeout=self.timeout,
        )
        return parse_recommendations(output) if output is not None else []

    def get_hardware_fit(self, limit: int = DEFAULT_RECOMMENDATION_LIMIT) -> HardwareFit | None:
        """Return advisor data, or None when the advisor is unavailable."""
        system = self.get_system()
        if system is None:
            return None
        return HardwareFit(system=system, recommendations=self.get_recommendations(limit))
