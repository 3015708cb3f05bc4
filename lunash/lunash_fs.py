import os
from pathlib import Path, PurePath
from typing import Optional

from lunash.lunash_binding import NativeModule, as_text, lua_api, lua_field
from lunash.lunash_errors import NativeCallError


def basename(path: str) -> Optional[str]:
    """Final path component; None for the root, the empty path or a trailing '..'."""
    if not path:
        return None
    name = PurePath(path).name
    if name in ("", ".."):
        return None
    return name


def dirname(path: str) -> Optional[str]:
    """Parent of ``path``; '' for a bare relative name or '.', None for the root or ''."""
    if not path:
        return None
    p = PurePath(path)
    if not p.parts:
        return ""
    if p.parent == p:
        return None
    if len(p.parts) == 1 and not p.anchor:
        return ""
    return str(p.parent)


def readlink(path: str) -> str:
    try:
        return os.readlink(path)
    except OSError as e:
        raise NativeCallError(e.strerror or str(e)) from e


def cwd_parent() -> Optional[str]:
    cwd = Path.cwd()
    if cwd.parent == cwd:
        return None
    return str(cwd.parent)


class FsModule(NativeModule):
    """Read-only filesystem path helpers, exposed as ``fs``."""
    name = "fs"

    @lua_api
    def basename(self, path):
        return basename(as_text(path, "path"))

    @lua_api
    def dirname(self, path):
        return dirname(as_text(path, "path"))

    @lua_api
    def readlink(self, path):
        return readlink(as_text(path, "path"))

    @lua_field
    def cwd_parent(self):
        return cwd_parent()
