from typing import List

from lunash.lunash_binding import NativeModule, as_text, lua_api
from lunash.lunash_errors import NativeCallError


def split(s: str, sep: str) -> List[str]:
    # Empty segments are kept: split("a,,b", ",") -> ["a", "", "b"]
    if sep == "":
        raise NativeCallError("separator must not be empty")
    return s.split(sep)


def trim(s: str) -> str:
    return s.strip()


class StringModule(NativeModule):
    """String helpers missing from Lua's string library, exposed as ``stringx``."""
    name = "stringx"

    @lua_api
    def split(self, s, sep):
        return split(as_text(s, "string"), as_text(sep, "separator"))

    @lua_api
    def trim(self, s):
        return trim(as_text(s, "string"))
