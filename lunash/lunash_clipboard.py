from typing import Any, Dict

import pyperclip
from PIL import Image, ImageGrab

from lunash.lunash_binding import NativeModule, as_text, lua_api
from lunash.lunash_errors import NativeCallError

# Every call reaches the system clipboard on its own; nothing is held between calls.


def set_text(text: str) -> bool:
    try:
        pyperclip.copy(text)
    except pyperclip.PyperclipException as e:
        raise NativeCallError(f"clipboard unavailable: {e}") from e
    return True


def get_text() -> str:
    try:
        return pyperclip.paste()
    except pyperclip.PyperclipException as e:
        raise NativeCallError(f"clipboard unavailable: {e}") from e


def get_image() -> Dict[str, Any]:
    """Return the clipboard image as RGBA bytes with its dimensions."""
    try:
        grabbed = ImageGrab.grabclipboard()
    except (OSError, NotImplementedError) as e:
        raise NativeCallError(f"clipboard unavailable: {e}") from e
    if not isinstance(grabbed, Image.Image):
        raise NativeCallError("clipboard does not contain an image")
    rgba = grabbed.convert("RGBA")
    width, height = rgba.size
    return {"width": width, "height": height, "bytes": rgba.tobytes()}


class ClipboardModule(NativeModule):
    """System clipboard access, exposed as ``clipboard``."""
    name = "clipboard"

    @lua_api
    def set(self, text):
        return set_text(as_text(text, "text"))

    @lua_api
    def get(self):
        return get_text()

    @lua_api
    def get_image(self):
        return get_image()
