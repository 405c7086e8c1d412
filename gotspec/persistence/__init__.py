"""
Persistence package for spec documents and static validation.

Architecture:
- serializer loads and dumps spec and state documents as JSON
- validator analyzes specs without running them

Cross-cutting:
- Malformed documents raise SpecFormatError
"""

from .serializer import load_spec, load_state, loads_spec, spec_from_dict, spec_to_dict, state_from_dict, state_to_dict
from .validator import SpecAnalysis, Validator

__all__ = [
    "load_spec",
    "loads_spec",
    "spec_from_dict",
    "spec_to_dict",
    "load_state",
    "state_from_dict",
    "state_to_dict",
    "SpecAnalysis",
    "Validator",
]
