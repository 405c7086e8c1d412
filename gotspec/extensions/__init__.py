"""
Extensions package for running action and guard scripts.

Architecture:
- ActionSandbox is the one interface the stepper uses to run scripts
- NoopSandbox and CallableSandbox are the built-in implementations

Security:
- Scripts get private copies of bindings and properties
"""

from gotspec.core.errors import ScriptError

from .sandbox import INTERPRETERS, ActionEnv, ActionSandbox, CallableSandbox, NoopSandbox, SandboxResult

__all__ = ["INTERPRETERS", "ActionEnv", "ActionSandbox", "CallableSandbox", "NoopSandbox", "SandboxResult", "ScriptError"]
