"""Local runtime detection, model listing and hardware information."""

from clawconf.system.hardware_fit import HardwareFit, HardwareFitAdapter, Recommendation, SystemDescription
from clawconf.system.memory import MemoryDetector, MemorySnapshot, format_human
from clawconf.system.models import ModelLister
from clawconf.system.runtimes import DetectionResult, Runtime, RuntimeDetector, RuntimeStatus

__all__ = [
    "HardwareFit",
    "HardwareFitAdapter",
    "Recommendation",
    "SystemDescription",
    "MemoryDetector",
    "MemorySnapshot",
    "format_human",
    "ModelLister",
    "DetectionResult",
    "Runtime",
    "RuntimeDetector",
    "RuntimeStatus",
]
