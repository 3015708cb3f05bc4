# lunash_runtime.py

import asyncio
import sys
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, List, Literal, Optional, Sequence, TextIO

import lupa

from lunash.lunash_binding import Binder, NativeModule, register_modules
from lunash.lunash_clipboard import ClipboardModule
from lunash.lunash_config import Settings
from lunash.lunash_errors import CompileError, LunashError, RuntimeFault, SetupError
from lunash.lunash_fs import FsModule
from lunash.lunash_http import HttpModule, SharedCell, create_client
from lunash.lunash_logging import get_logger
from lunash.lunash_regex import RegexModule
from lunash.lunash_resolver import ResolvedScript
from lunash.lunash_string import StringModule

log = get_logger(__name__)

# ===================================================================
# 1. Sandbox
# ===================================================================

# Base-library entries removed before any script runs
BLOCKED_GLOBALS = (
    "io", "debug", "package", "require", "dofile", "loadfile", "load",
    "loadstring", "coroutine", "utf8", "collectgarbage", "python", "rawset",
)
ALLOWED_OS = frozenset({"clock", "date", "difftime", "getenv", "time"})

_PRINT_SOURCE = """
function(write)
  local select, tostring, concat = select, tostring, table.concat
  return function(...)
    local parts = {}
    for i = 1, select('#', ...) do
      parts[i] = tostring((select(i, ...)))
    end
    write(concat(parts, "\\t"))
  end
end
"""


def _filter_attribute(obj, attr_name, is_setting):
    """Scripts may read public attributes of Python values and never write them."""
    if is_setting or not isinstance(attr_name, str) or attr_name.startswith("_"):
        raise AttributeError(f"access to '{attr_name}' is not allowed")
    return attr_name


class SessionState(Enum):
    CREATED = "created"
    CONFIGURED = "configured"
    LOADED = "loaded"
    RUNNING = "running"
    COMPLETED = "completed"
    FAULTED = "faulted"


# ===================================================================
# 2. Session
# ===================================================================

class Session:
    """One interpreter lifecycle: create, configure, load, run, dispose."""

    def __init__(self, script: ResolvedScript, argv: Sequence[str], *,
                 settings: Optional[Settings] = None, output: Optional[TextIO] = None):
        self.script = script
        self.argv = list(argv)
        self.settings = settings or Settings()
        self.output = output
        self.states: List[SessionState] = []
        self.modules: dict = {}
        self.lua: Any = None
        self._load: Any = None
        self._http_cell: Optional[SharedCell] = None

    @property
    def state(self) -> Optional[SessionState]:
        return self.states[-1] if self.states else None

    @property
    def chunk_name(self) -> str:
        return str(self.script.path)

    def _enter(self, state: SessionState):
        self.states.append(state)
        log.debug("session %s: %s", self.chunk_name, state.value)

    def _write(self, text):
        if isinstance(text, bytes):
            text = text.decode("utf-8", errors="replace")
        stream = self.output or sys.stdout
        stream.write(f"{text}\n")
        stream.flush()

    def _create(self):
        try:
            self.lua = lupa.LuaRuntime(
                register_eval=False,
                register_builtins=False,
                attribute_filter=_filter_attribute,
            )
        except Exception as e:
            raise SetupError(f"Cannot create Lua runtime: {e}") from e
        g = self.lua.globals()
        # Keep the compiler for our own use before scripts lose access to it
        self._load = g.load
        for name in BLOCKED_GLOBALS:
            g[name] = None
        os_table = g.os
        for key in [k for k in os_table.keys() if k not in ALLOWED_OS]:
            os_table[key] = None
        self._enter(SessionState.CREATED)

    def build_modules(self) -> List[NativeModule]:
        self._http_cell = SharedCell(create_client(self.settings.http_timeout, self.settings.http_headers))
        return [
            FsModule(),
            StringModule(),
            RegexModule(),
            HttpModule(self._http_cell),
            ClipboardModule(),
        ]

    def _configure(self):
        try:
            binder = Binder(self.lua)
            self.modules = register_modules(binder, self.build_modules())
            g = self.lua.globals()
            # arg[0] is the launcher program, arg[1..n] the remaining process arguments
            g.arg = binder.freeze_list("arg", dict(enumerate(self.argv)))
            g.print = self.lua.eval(_PRINT_SOURCE)(self._write)
        except LunashError:
            raise
        except Exception as e:
            raise SetupError(f"Cannot configure Lua runtime: {e}") from e
        self._enter(SessionState.CONFIGURED)

    def _compile(self):
        source = self.script.source
        if source.startswith("#"):
            # Shebang line; commented out so line numbers stay put
            source = "--" + source
        result = self._load(source, "@" + self.chunk_name, "t")
        if isinstance(result, tuple):
            chunk, err = result[0], (result[1] if len(result) > 1 else None)
        else:
            chunk, err = result, None
        if chunk is None:
            raise CompileError(str(err or "failed to compile"), self.chunk_name)
        self._enter(SessionState.LOADED)
        return chunk

    def _execute(self, chunk):
        self._enter(SessionState.RUNNING)
        try:
            chunk()
        except lupa.LuaError as e:
            raise RuntimeFault(str(e), self.chunk_name) from e
        except LunashError as e:
            # A native error the script did not catch
            raise RuntimeFault(str(e), self.chunk_name) from e
        except Exception as e:
            raise RuntimeFault(f"{type(e).__name__}: {e}", self.chunk_name) from e
        self._enter(SessionState.COMPLETED)

    def close(self):
        if self._http_cell is not None:
            self._http_cell.value.close()
            self._http_cell = None
        self._load = None
        self.lua = None

    def run(self):
        """Run the script to completion. Raises a LunashError on failure."""
        try:
            self._create()
            self._configure()
            chunk = self._compile()
            self._execute(chunk)
        except LunashError:
            self._enter(SessionState.FAULTED)
            raise
        except Exception as e:
            self._enter(SessionState.FAULTED)
            raise RuntimeFault(f"{type(e).__name__}: {e}", self.chunk_name) from e
        finally:
            self.close()


# ===================================================================
# 3. Host
# ===================================================================

@dataclass
class ExecutionResult:
    """The structured result of a script execution."""
    status: Literal['success', 'error']
    error_kind: Optional[str] = None
    error_message: Optional[str] = None
    states: List[SessionState] = field(default_factory=list)

    def format_error(self) -> str:
        if self.status != 'error':
            return ""
        return f"{self.error_kind or 'Error'}: {self.error_message or 'Unknown error'}"


class RuntimeHost:
    """Runs each session on its own worker thread and reports how it ended."""

    session_factory: Callable[..., Session] = Session

    def __init__(self, settings: Optional[Settings] = None, output: Optional[TextIO] = None):
        self.settings = settings or Settings()
        self.output = output

    async def run(self, script: ResolvedScript, argv: Sequence[str]) -> ExecutionResult:
        session = self.session_factory(script, argv, settings=self.settings, output=self.output)
        loop = asyncio.get_running_loop()
        with ThreadPoolExecutor(max_workers=1, thread_name_prefix="lunash-session") as worker:
            try:
                await loop.run_in_executor(worker, session.run)
            except LunashError as e:
                log.debug("session failed: %s", e)
                return ExecutionResult('error', e.kind, str(e), list(session.states))
            except Exception as e:
                # Anything escaping the worker is reported, never re-raised
                log.debug("session worker crashed", exc_info=True)
                return ExecutionResult('error', RuntimeFault.kind, f"session worker failed: {e}", list(session.states))
        return ExecutionResult('success', states=list(session.states))


def run_script(script: ResolvedScript, argv: Sequence[str], *,
               settings: Optional[Settings] = None, output: Optional[TextIO] = None) -> ExecutionResult:
    """Blocking convenience wrapper around RuntimeHost.run."""
    return asyncio.run(RuntimeHost(settings, output).run(script, argv))
