# lunash_binding.py
#
# The contract between native Python modules and the guest Lua runtime.
# Each module is a closed surface: its operations are enumerated once when the
# module is registered and installed as a sealed Lua table.

import inspect
from abc import ABC
from typing import Any, Callable, ClassVar, Dict, Iterable, Optional, Tuple

from lunash.lunash_errors import LunashError, NativeCallError, SetupError
from lunash.lunash_logging import get_logger

log = get_logger(__name__)

# Lua globals that a native module may never shadow
RESERVED_GLOBALS = frozenset({
    "_G", "_VERSION", "_ENV", "arg", "assert", "bit", "bit32", "error",
    "getmetatable", "ipairs", "math", "next", "os", "pairs", "pcall", "print",
    "rawequal", "rawget", "rawlen", "rawset", "select", "setmetatable",
    "string", "table", "tonumber", "tostring", "type", "xpcall",
})

_SEAL_SOURCE = """
function(name, ops, getters)
  return setmetatable({}, {
    __index = function(_, key)
      local op = ops[key]
      if op ~= nil then return op end
      local get = getters[key]
      if get ~= nil then return get() end
      return nil
    end,
    __newindex = function(_, key)
      error(name .. " is read-only (cannot set '" .. tostring(key) .. "')", 2)
    end,
    __pairs = function() return next, ops, nil end,
    __tostring = function() return name end,
    __metatable = false,
  })
end
"""

_FREEZE_SOURCE = """
function(name, items)
  return setmetatable({}, {
    __index = items,
    __newindex = function(_, key)
      error(name .. " is read-only (cannot set '" .. tostring(key) .. "')", 2)
    end,
    __len = function() return #items end,
    __pairs = function() return next, items, nil end,
    __metatable = false,
  })
end
"""


def lua_api(func):
    """Mark a method as an operation callable from Lua."""
    func._is_lua_api = True
    return func


def lua_field(func):
    """Mark a zero-argument method as a read-only attribute, computed on each read."""
    func._is_lua_field = True
    return func


class NativeModule(ABC):
    """Base class for any Python object exposed to guest scripts."""
    name: ClassVar[str] = "native"

    def exports(self) -> Tuple[Dict[str, Callable], Dict[str, Callable]]:
        """Enumerate (operations, fields) marked with @lua_api / @lua_field."""
        ops: Dict[str, Callable] = {}
        fields: Dict[str, Callable] = {}
        # Inspect the class so field getters are not invoked here
        for attr, member in inspect.getmembers(type(self), callable):
            if attr.startswith("_"):
                continue
            if getattr(member, "_is_lua_api", False):
                ops[attr] = getattr(self, attr)
            elif getattr(member, "_is_lua_field", False):
                fields[attr] = getattr(self, attr)
        return ops, fields


def lua_number_text(value: float) -> str:
    """Format a number the way Lua's tostring does."""
    if isinstance(value, int):
        return str(value)
    text = "%.14g" % value
    if text.lstrip("-").isdigit():
        text += ".0"
    return text


def as_text(value: Any, what: str = "argument") -> str:
    """Coerce a Lua string or number into a Python str."""
    match value:
        case bool():
            raise NativeCallError(f"{what} must be a string, got boolean")
        case str():
            return value
        case int() | float():
            return lua_number_text(value)
        case None:
            raise NativeCallError(f"{what} must be a string, got nil")
        case _:
            raise NativeCallError(f"{what} must be a string, got {type(value).__name__}")


def _positional_arity(fn: Callable) -> Tuple[int, Optional[int]]:
    """(required, accepted) positional parameter counts; accepted is None for *args."""
    required, accepted = 0, 0
    for param in inspect.signature(fn).parameters.values():
        if param.kind == param.VAR_POSITIONAL:
            return required, None
        if param.kind in (param.POSITIONAL_ONLY, param.POSITIONAL_OR_KEYWORD):
            accepted += 1
            if param.default is param.empty:
                required += 1
    return required, accepted


class Binder:
    """Converts Python values and native modules into Lua values for one runtime."""

    def __init__(self, lua):
        self.lua = lua
        self._seal = lua.eval(_SEAL_SOURCE)
        self._freeze = lua.eval(_FREEZE_SOURCE)

    def to_lua(self, value: Any) -> Any:
        match value:
            case NativeModule():
                return self.seal(value)
            case list() | tuple():
                converted = [self.to_lua(v) for v in value]
                if any(v is None for v in converted):
                    # Leave holes where values are missing
                    return self.lua.table_from({i: v for i, v in enumerate(converted, 1) if v is not None})
                return self.lua.table_from(converted)
            case dict():
                return self.lua.table_from({k: self.to_lua(v) for k, v in value.items()})
            case _:
                return value

    def _wrap(self, module_name: str, op_name: str, fn: Callable) -> Callable:
        to_lua = self.to_lua
        required, accepted = _positional_arity(fn)

        def call(*args):
            # Lua semantics: surplus arguments are dropped, missing ones are nil
            if accepted is not None and len(args) > accepted:
                args = args[:accepted]
            if len(args) < required:
                args = args + (None,) * (required - len(args))
            try:
                result = fn(*args)
            except NativeCallError as e:
                if e.module is None:
                    e.module, e.operation = module_name, op_name
                raise
            return to_lua(result)

        call.__name__ = f"{module_name}.{op_name}"
        return call

    def seal(self, module: NativeModule):
        ops, fields = module.exports()
        lua_ops = self.lua.table_from({n: self._wrap(module.name, n, f) for n, f in ops.items()})
        lua_fields = self.lua.table_from({n: self._wrap(module.name, n, f) for n, f in fields.items()})
        return self._seal(module.name, lua_ops, lua_fields)

    def freeze_list(self, name: str, items: Dict[int, Any]):
        return self._freeze(name, self.lua.table_from(items))


def register_modules(binder: Binder, modules: Iterable[NativeModule]) -> Dict[str, NativeModule]:
    """Install every module as a sealed global. Any failure is a SetupError."""
    g = binder.lua.globals()
    registered: Dict[str, NativeModule] = {}
    for module in modules:
        name = module.name
        if name in RESERVED_GLOBALS:
            raise SetupError(f"Module name '{name}' collides with a Lua global")
        if name in registered:
            raise SetupError(f"Module name '{name}' registered twice")
        try:
            g[name] = binder.seal(module)
        except LunashError:
            raise
        except Exception as e:
            raise SetupError(f"Failed to bind module '{name}': {e}") from e
        registered[name] = module
        log.debug("registered module %s", name)
    return registered
