import threading
from contextlib import contextmanager
from typing import Dict, Generic, Iterator, Optional, TypeVar

import httpx

from lunash import __version__
from lunash.lunash_binding import NativeModule, as_text, lua_api
from lunash.lunash_errors import (
    HttpClientUnavailable,
    HttpDecodeError,
    HttpRequestError,
    HttpSetupError,
    LunashError,
)
from lunash.lunash_logging import get_logger

T = TypeVar("T")

log = get_logger(__name__)


class PoisonedCellError(RuntimeError):
    pass


class SharedCell(Generic[T]):
    """A value behind an exclusive lock.

    If a holder leaves through an unexpected exception the cell is poisoned
    and every later acquisition raises PoisonedCellError.
    """

    def __init__(self, value: T):
        self._value = value
        self._lock = threading.Lock()
        self._poisoned = False

    @property
    def poisoned(self) -> bool:
        return self._poisoned

    @property
    def value(self) -> T:
        return self._value

    @contextmanager
    def lock(self) -> Iterator[T]:
        with self._lock:
            if self._poisoned:
                raise PoisonedCellError("shared resource left in an inconsistent state")
            try:
                yield self._value
            except LunashError:
                # Reported failures leave the value intact
                raise
            except BaseException:
                self._poisoned = True
                raise


def create_client(timeout: Optional[float] = None, headers: Optional[Dict[str, str]] = None) -> httpx.Client:
    """One pooled client per session; httpx default timeouts unless configured."""
    merged = {"User-Agent": f"lunash/{__version__}", **(headers or {})}
    kwargs = {}
    if timeout is not None:
        kwargs["timeout"] = timeout
    return httpx.Client(headers=merged, follow_redirects=True, **kwargs)


def decode_body(response: httpx.Response) -> str:
    encoding = response.charset_encoding or "utf-8"
    try:
        return response.content.decode(encoding)
    except (UnicodeDecodeError, LookupError) as e:
        raise HttpDecodeError(f"cannot decode response body as {encoding}: {e}") from e


class HttpModule(NativeModule):
    """Outbound HTTP over the session's shared client, exposed as ``http``."""
    name = "http"

    def __init__(self, cell: Optional[SharedCell[httpx.Client]]):
        self._cell = cell

    def _send(self, method: str, url: str, body: Optional[str] = None) -> str:
        if self._cell is None:
            raise HttpSetupError("HTTP client not available")
        headers = {}
        content = None
        if body is not None:
            content = body.encode("utf-8")
            headers["Content-Type"] = "text/plain; charset=utf-8"
        try:
            # Held for one request/response exchange only
            with self._cell.lock() as client:
                try:
                    response = client.request(method, url, headers=headers, content=content)
                except (httpx.HTTPError, httpx.InvalidURL) as e:
                    raise HttpRequestError(str(e) or type(e).__name__) from e
        except PoisonedCellError as e:
            raise HttpClientUnavailable(f"HTTP client unavailable: {e}") from e
        except LunashError:
            raise
        except Exception as e:
            # Cell is poisoned at this point
            raise HttpRequestError(f"{type(e).__name__}: {e}") from e
        log.debug("%s %s -> %s", method, url, response.status_code)
        return decode_body(response)

    @lua_api
    def get(self, url):
        return self._send("GET", as_text(url, "url"))

    @lua_api
    def post(self, url, body):
        return self._send("POST", as_text(url, "url"), as_text(body, "body"))
