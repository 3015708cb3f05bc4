__version__ = "0.1.0"

from lunash.lunash_errors import (
    CompileError,
    LunashError,
    NativeCallError,
    ResolutionError,
    RuntimeFault,
    SetupError,
)
from lunash.lunash_resolver import ResolvedScript, find_script, resolve_script
from lunash.lunash_runtime import ExecutionResult, RuntimeHost, Session, SessionState, run_script

__all__ = [
    "__version__",
    "CompileError",
    "ExecutionResult",
    "LunashError",
    "NativeCallError",
    "ResolutionError",
    "ResolvedScript",
    "RuntimeFault",
    "RuntimeHost",
    "Session",
    "SessionState",
    "SetupError",
    "find_script",
    "resolve_script",
    "run_script",
]
