import re
from typing import List, Optional

from lunash.lunash_binding import NativeModule, as_text, lua_api, lua_field
from lunash.lunash_errors import NativeCallError


def compile_pattern(pattern: str) -> "re.Pattern[str]":
    try:
        return re.compile(pattern)
    except re.error as e:
        raise NativeCallError(f"invalid pattern {pattern!r}: {e}") from e


class Matcher(NativeModule):
    """A compiled pattern handed to scripts by ``regex.new``."""
    name = "regex.matcher"

    def __init__(self, pattern: str):
        self._compiled = compile_pattern(pattern)

    @lua_field
    def pattern(self) -> str:
        return self._compiled.pattern

    @lua_api
    def is_match(self, text) -> bool:
        return self._compiled.search(as_text(text, "text")) is not None

    @lua_api
    def captures(self, text) -> List[Optional[str]]:
        """Whole match then each group; None marks a group that did not take part."""
        m = self._compiled.search(as_text(text, "text"))
        if m is None:
            return []
        return [m.group(0), *m.groups()]


class RegexModule(NativeModule):
    """Pattern matching exposed as ``regex``."""
    name = "regex"

    @lua_api
    def new(self, pattern) -> Matcher:
        return Matcher(as_text(pattern, "pattern"))

    @lua_api
    def is_match(self, pattern, text) -> bool:
        return Matcher(as_text(pattern, "pattern")).is_match(text)

    @lua_api
    def captures(self, pattern, text) -> List[Optional[str]]:
        return Matcher(as_text(pattern, "pattern")).captures(text)
