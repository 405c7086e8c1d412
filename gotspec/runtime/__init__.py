"""
Runtime package for instrumentation and machine instances.

Architecture:
- Times collects elapsed time per named operation (match, step, walk,
  sandbox) and is passed explicitly into calls
- Machine (gotspec.runtime.machine) owns one State and serializes walks
  against it

Cross-cutting:
- Collection never alters results
- Counters are lock-guarded and safe to read during execution
"""

from .monitor import NOOP_TIMES, Times

__all__ = ["Times", "NOOP_TIMES"]
