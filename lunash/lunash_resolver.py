import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional, Tuple

from lunash.lunash_config import APP_NAME, Settings, load_settings
from lunash.lunash_errors import ResolutionError
from lunash.lunash_logging import get_logger

SCRIPT_EXT = "lua"

log = get_logger(__name__)


@dataclass(frozen=True)
class ResolvedScript:
    """A located script and its source text."""
    path: Path
    source: str

    @classmethod
    def load(cls, path: Path) -> "ResolvedScript":
        return cls(path=path, source=path.read_text(encoding="utf-8"))


def script_filename(name: str) -> str:
    return f"{name}.{APP_NAME}.{SCRIPT_EXT}"


def _check_name(name: str):
    if not name:
        raise ResolutionError(name, "Script name must not be empty")
    seps = {"/", os.sep, os.altsep} - {None}
    if any(sep in name for sep in seps):
        raise ResolutionError(name, f"Script name '{name}' must not contain a path separator")


def _candidates(filename: str, settings: Optional[Settings]) -> Iterator[Tuple[str, Path]]:
    # Generated lazily so that later tiers are never touched after a hit
    yield "cwd", Path(filename)
    settings = settings or load_settings()
    yield "user", settings.user_scripts_dir / filename
    for directory in settings.script_path:
        yield "path", directory / filename


def find_script(name: str, *, settings: Optional[Settings] = None) -> Optional[Path]:
    """Return the first existing script for ``name`` across the search tiers, or None."""
    _check_name(name)
    filename = script_filename(name)
    for tier, candidate in _candidates(filename, settings):
        log.debug("probe %s: %s", tier, candidate)
        if candidate.is_file():
            log.debug("resolved '%s' to %s", name, candidate)
            return candidate
    return None


def resolve_script(name: str, *, settings: Optional[Settings] = None) -> ResolvedScript:
    path = find_script(name, settings=settings)
    if path is None:
        raise ResolutionError(name)
    try:
        return ResolvedScript.load(path)
    except (OSError, UnicodeDecodeError) as e:
        raise ResolutionError(name, f"Cannot read script {path}: {e}") from e
