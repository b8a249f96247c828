"""HTTP request routing and the threaded server that hosts it.

Every request is handled on its own thread by ``ThreadingHTTPServer``. The
only state shared between request threads is the staging sequence owned by
the `AssetStager`.
"""

from __future__ import annotations

import contextlib
import logging
import posixpath
from dataclasses import dataclass
from http import HTTPStatus
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from typing import Any, Iterator
from urllib.parse import unquote, urlsplit

from .config import Config
from .content import DocumentError, is_document
from .listing import DirectoryLister
from .render import DocumentRenderer
from .staging import AssetStager, StagingSequence
from .templates import TemplateError, TemplateSet
from .themes import ThemeLoader, ThemeResolver

logger = logging.getLogger(__name__)

STATIC_PREFIX = "/static/"
HTML_CONTENT_TYPE = "text/html; charset=utf-8"
TEXT_CONTENT_TYPE = "text/plain; charset=utf-8"


@dataclass(frozen=True, slots=True)
class Response:
    status: int
    body: str
    content_type: str = HTML_CONTENT_TYPE


class RequestDispatcher:
    """Route a request path to the document renderer or the directory lister.

    ``dispatch`` returns ``None`` when neither applies and the request should
    fall through to plain static file serving.
    """

    def __init__(self, *, content_root: Path, renderer: DocumentRenderer, lister: DirectoryLister) -> None:
        self._content_root = content_root
        self._renderer = renderer
        self._lister = lister

    @property
    def content_root(self) -> Path:
        return self._content_root

    def dispatch(self, url_path: str) -> Response | None:
        path = unquote(urlsplit(url_path).path)
        if path == "/favicon.ico":
            return Response(HTTPStatus.NOT_FOUND, "not found", TEXT_CONTENT_TYPE)

        rel_path = content_relative_path(path)
        target = self._content_root / rel_path if rel_path else self._content_root
        if is_document(target.name):
            try:
                body = self._renderer.render(target)
            except (DocumentError, TemplateError) as exc:
                logger.error("%s", exc)
                return Response(HTTPStatus.INTERNAL_SERVER_ERROR, str(exc), TEXT_CONTENT_TYPE)
            return Response(HTTPStatus.OK, body)

        try:
            listing = self._lister.render(rel_path)
        except (OSError, TemplateError) as exc:
            logger.error("%s", exc)
            return Response(HTTPStatus.INTERNAL_SERVER_ERROR, str(exc), TEXT_CONTENT_TYPE)
        if listing is not None:
            return Response(HTTPStatus.OK, listing)
        return None


def content_relative_path(url_path: str) -> str:
    """Normalize a URL path onto the content root; ".." segments cannot climb above it."""
    normalized = posixpath.normpath("/" + url_path.replace("\\", "/"))
    return normalized.strip("/")


def create_dispatcher(config: Config, content_root: Path, *, templates: TemplateSet | None = None) -> RequestDispatcher:
    """Wire the theme, rendering, and listing components for ``content_root``.

    Raises ``TemplateError`` when the template set cannot be loaded.
    """
    content_root = content_root.resolve()
    templates = templates or TemplateSet(config.templates_dir)
    resolver = ThemeResolver(builtin_dir=config.builtin_themes_dir, repo_dir=config.theme_repo)
    stager = AssetStager(config.staging_root, StagingSequence())
    theme_loader = ThemeLoader(resolver, stager)
    renderer = DocumentRenderer(
        templates=templates,
        theme_loader=theme_loader,
        default_theme=config.theme,
    )
    lister = DirectoryLister(
        content_root=content_root,
        templates=templates,
        theme_loader=theme_loader,
        default_theme=config.theme,
        default_title=config.listing_title,
    )
    return RequestDispatcher(content_root=content_root, renderer=renderer, lister=lister)


class _ThreadingHTTPServer(ThreadingHTTPServer):
    daemon_threads = True
    allow_reuse_address = True


def make_request_handler(dispatcher: RequestDispatcher, *, base_dir: Path) -> type[SimpleHTTPRequestHandler]:
    """Create a handler serving documents and listings from ``dispatcher``.

    ``/static/`` paths come from ``base_dir``; anything the dispatcher declines
    is served as a plain file from the content root.
    """
    content_path = str(dispatcher.content_root)
    base_path = str(base_dir)

    class PresentRequestHandler(SimpleHTTPRequestHandler):
        def __init__(self, *args: Any, **kwargs: Any) -> None:
            super().__init__(*args, directory=content_path, **kwargs)

        extensions_map = dict(SimpleHTTPRequestHandler.extensions_map)
        extensions_map.update(
            {
                ".css": "text/css; charset=utf-8",
                ".js": "application/javascript; charset=utf-8",
                ".json": "application/json; charset=utf-8",
                ".svg": "image/svg+xml",
                ".go": "text/plain; charset=utf-8",
            }
        )

        def do_GET(self) -> None:  # noqa: N802
            path = urlsplit(self.path).path
            if path.startswith(STATIC_PREFIX):
                self.directory = base_path
                super().do_GET()
                return
            response = dispatcher.dispatch(self.path)
            if response is None:
                super().do_GET()
                return
            self._send(response)

        def _send(self, response: Response) -> None:
            encoded = response.body.encode("utf-8")
            self.send_response(response.status)
            self.send_header("Content-Type", response.content_type)
            self.send_header("Content-Length", str(len(encoded)))
            self.end_headers()
            self.wfile.write(encoded)

        def log_message(self, format: str, *args: Any) -> None:  # noqa: A002
            logger.info("%s - %s", self.address_string(), format % args)

    return PresentRequestHandler


@contextlib.contextmanager
def serve(
    host: str,
    port: int,
    handler: type[SimpleHTTPRequestHandler],
) -> Iterator[ThreadingHTTPServer]:
    """Context manager that creates and cleans up the HTTP server."""
    server = _ThreadingHTTPServer((host, port), handler)
    try:
        yield server
    finally:
        server.server_close()


def bound_address(server: ThreadingHTTPServer) -> tuple[str, int]:
    raw_host = server.server_address[0]
    host = raw_host.decode("utf-8", "ignore") if isinstance(raw_host, bytes) else str(raw_host)
    return host, int(server.server_address[1])

