from typing import Optional


class LunashError(Exception):
    """Base class for every failure the launcher reports."""
    kind = "Error"

    def __str__(self):
        return self.args[0] if self.args else self.kind


class ResolutionError(LunashError):
    kind = "ResolutionError"

    def __init__(self, name: str, message: Optional[str] = None):
        self.name = name
        super().__init__(message or f"Script for '{name}' not found")


class SetupError(LunashError):
    kind = "SetupError"


class CompileError(LunashError):
    kind = "CompileError"

    def __init__(self, message: str, path: Optional[str] = None):
        self.path = path
        super().__init__(message)


class RuntimeFault(LunashError):
    kind = "RuntimeFault"

    def __init__(self, message: str, path: Optional[str] = None):
        self.path = path
        super().__init__(message)


class NativeCallError(LunashError):
    """A native module operation failed; surfaced to the guest as a Lua error."""
    kind = "NativeCallError"

    def __init__(self, message: str, module: Optional[str] = None, operation: Optional[str] = None):
        self.module = module
        self.operation = operation
        super().__init__(message)

    def __str__(self):
        msg = super().__str__()
        if self.module and self.operation:
            return f"{self.module}.{self.operation}: {msg}"
        return msg


# --- HTTP failures ---

class HttpSetupError(NativeCallError):
    kind = "HttpSetupError"


class HttpClientUnavailable(NativeCallError):
    kind = "HttpClientUnavailable"


class HttpRequestError(NativeCallError):
    kind = "HttpRequestError"


class HttpDecodeError(NativeCallError):
    kind = "HttpDecodeError"
