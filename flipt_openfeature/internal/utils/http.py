from contextlib import contextmanager
import http.client
import socket
from typing import Callable
from typing import ContextManager
from typing import Dict
from typing import Generator
from typing import Optional
from typing import Union
from urllib.parse import ParseResult
from urllib.parse import urlparse


DEFAULT_TIMEOUT = 10.0

SUPPORTED_SCHEMES = ("http", "https", "unix")

# Host header value sent over unix domain sockets
UDS_HOSTNAME = "unix"


def join_path(base_path: str, path: str) -> str:
    """Prefix ``path`` with ``base_path``.

    >>> join_path("/flipt/", "/api/v1/namespaces")
    '/flipt/api/v1/namespaces'
    >>> join_path("/", "/api/v1/namespaces")
    '/api/v1/namespaces'
    """
    return base_path.rstrip("/") + "/" + path.lstrip("/")


class _BasePathMixin(object):
    """Sends every request under ``base_path``, for Flipt served behind a path prefix."""

    base_path = "/"

    def putrequest(self, method, url, *args, **kwargs):
        return super(_BasePathMixin, self).putrequest(  # type: ignore[misc]
            method, join_path(self.base_path, url), *args, **kwargs
        )


class FliptHTTPConnection(_BasePathMixin, http.client.HTTPConnection):
    pass


class FliptHTTPSConnection(_BasePathMixin, http.client.HTTPSConnection):
    pass


class UnixHTTPConnection(http.client.HTTPConnection):
    """HTTP connection to Flipt listening on a unix domain socket.

    ``UDS_HOSTNAME`` is only sent in the ``Host`` header.
    """

    def __init__(self, socket_path: str, timeout: float = DEFAULT_TIMEOUT) -> None:
        super(UnixHTTPConnection, self).__init__(UDS_HOSTNAME, timeout=timeout)
        self.socket_path = socket_path

    def connect(self) -> None:
        sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        sock.settimeout(self.timeout)
        try:
            sock.connect(self.socket_path)
        except OSError:
            sock.close()
            raise
        self.sock = sock


ConnectionType = Union[FliptHTTPConnection, FliptHTTPSConnection, UnixHTTPConnection]

Connector = Callable[[], ContextManager[ConnectionType]]



class Response(object):
    """HTTP response received from Flipt.

    The body is read eagerly so the connection can be closed right away.
    """

    __slots__ = ["status", "body", "reason", "msg"]

    def __init__(self, status: int, body: bytes, reason: Optional[str] = None, msg=None) -> None:
        self.status = status
        self.body = body
        self.reason = reason
        self.msg = msg

    @classmethod
    def from_http_response(cls, resp) -> "Response":
        return cls(
            status=resp.status,
            body=resp.read(),
            reason=getattr(resp, "reason", None),
            msg=getattr(resp, "msg", None),
        )

    @property
    def content_type(self) -> str:
        if self.msg is None:
            return ""
        return self.msg.get("Content-Type", "") or ""

    def __repr__(self) -> str:
        return "{0}(status={1!r}, body={2!r}, reason={3!r}, msg={4!r})".format(
            self.__class__.__name__,
            self.status,
            self.body,
            self.reason,
            self.msg,
        )


def verify_url(url: str) -> ParseResult:
    """Validate a URL and return its parsed form.

    Raises ``ValueError`` for unsupported schemes and for http(s) URLs
    without a host.
    """
    parsed = urlparse(url)

    if parsed.scheme not in SUPPORTED_SCHEMES:
        raise ValueError(
            "Unsupported protocol '%s' in url '%s'. Must be one of: %s"
            % (parsed.scheme, url, ", ".join(SUPPORTED_SCHEMES))
        )
    if parsed.scheme in ("http", "https") and not parsed.hostname:
        raise ValueError("Invalid hostname in url '%s'" % url)
    if parsed.scheme == "unix" and not parsed.path:
        raise ValueError("Invalid file path in url '%s'" % url)

    return parsed


def get_connection(url: str, timeout: float = DEFAULT_TIMEOUT) -> ConnectionType:
    """Return an HTTP connection to the given URL."""
    parsed = verify_url(url)
    hostname = parsed.hostname or ""
    path = parsed.path or "/"

    if parsed.scheme == "unix":
        return UnixHTTPConnection(path, timeout=timeout)

    connection: Union[FliptHTTPConnection, FliptHTTPSConnection]
    if parsed.scheme == "https":
        connection = FliptHTTPSConnection(hostname, parsed.port, timeout=timeout)
    else:
        connection = FliptHTTPConnection(hostname, parsed.port, timeout=timeout)
    connection.base_path = path
    return connection


def connector(url: str, timeout: float = DEFAULT_TIMEOUT) -> Connector:
    """Create a connector context manager for the given URL.

    The URL is validated once, here. Each use of the returned context manager
    opens a new connection and closes it on exit, so a connector can be shared
    across threads.

    Example::
        >>> connect = connector("http://localhost:8080")
        >>> with connect() as conn:
        ...     conn.request("GET", "/")
        ...     ...
    """
    verify_url(url)

    @contextmanager
    def _connector_context() -> Generator[ConnectionType, None, None]:
        connection = get_connection(url, timeout=timeout)
        try:
            yield connection
        finally:
            connection.close()

    return _connector_context


def request(
    connect: Connector,
    method: str,
    path: str,
    body: Optional[bytes] = None,
    headers: Optional[Dict[str, str]] = None,
) -> Response:
    """Perform a single request with a connection from ``connect``."""
    with connect() as conn:
        conn.request(method, path, body=body, headers=headers or {})
        return Response.from_http_response(conn.getresponse())

