"""HTTP serving for Folio.

Two servers live here:
- SiteServer renders pages per request from the content directories. A
  request carrying ``HX-Request: true`` gets only the inner content fragment,
  any other request gets the full document. Optionally watches the content
  and pushes reload messages to open browsers over a websocket.
- PreviewServer serves an already built output directory.

Key classes:
- Response: Status, body and content type of a routed request.
- RequestRouter: Maps paths to pages, independent of the socket layer.
- SiteServer: Dynamic server with optional live reload.
- PreviewServer: Static server for the build output.
"""

from __future__ import annotations

import asyncio
import functools
import json
import logging
import threading
import time
from dataclasses import dataclass
from http import HTTPStatus
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from urllib.parse import unquote, urlsplit

import websockets
from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from .config import Section, SiteConfig, load_config
from .content import PostNotFoundError, coerce_section, load_all_posts, load_section_posts
from .github import repository_source_for
from .protocols import RepositorySource
from .templates import PageComposer

logger = logging.getLogger(__name__)

HTML_CONTENT_TYPE = "text/html; charset=utf-8"

RELOAD_SCRIPT_TEMPLATE = """
<script>
(() => {{
  const ws = new WebSocket('ws://' + location.hostname + ':{ws_port}');
  ws.onmessage = (event) => {{
    const data = JSON.parse(event.data || '{{}}');
    if (data.type === 'reload') location.reload();
  }};
}})();
</script>
"""


@dataclass
class Response:
    """A routed response.

    Attributes:
        status: HTTP status code.
        body: Response body.
        content_type: Content-Type header value.
        full_page: True when body is a full document, False for fragments.
    """

    status: int
    body: str
    content_type: str = HTML_CONTENT_TYPE
    full_page: bool = True

    def encode(self) -> bytes:
        return self.body.encode("utf-8")


def is_fragment_request(headers) -> bool:
    """Check whether a request asks for a fragment.

    htmx marks its requests with ``HX-Request: true``. History restores
    carry the same header but need the full document.
    """
    if headers.get("HX-Request", "").lower() != "true":
        return False
    return headers.get("HX-History-Restore-Request", "").lower() != "true"


class RequestRouter:
    """Routes request paths to rendered pages.

    Content is re-read on every request. Paths that match no route return
    None so the caller can fall back to static files.

    Routes:
        /                       index
        /api/posts/{section}    post lines of one section (always a fragment)
        /{section}/{slug}       one post

    Attributes:
        site: Site configuration.
        repositories: Source of the projects listing.
        composer: Page composer.
    """

    def __init__(self, site: SiteConfig, repositories: RepositorySource):
        self.site = site
        self.repositories = repositories
        self.composer = PageComposer(site)

    def dispatch(self, path: str, fragment: bool = False) -> Response | None:
        """Render the response for a path.

        Args:
            path: URL path, already percent-decoded.
            fragment: Whether only the inner content is wanted.

        Returns:
            Response, or None when no route matches.
        """
        parts = [p for p in path.split("/") if p]
        if not parts:
            return self._index(fragment)
        if len(parts) == 3 and parts[:2] == ["api", "posts"]:
            return self._section_list(parts[2])
        if len(parts) == 2 and parts[0] in {s.value for s in Section}:
            return self._post(parts[0], parts[1], fragment)
        return None

    def not_found(self, fragment: bool = False, message: str = "Nothing lives here.") -> Response:
        if fragment:
            body = self.composer.not_found_content(message)
        else:
            body = self.composer.not_found_page(message)
        return Response(HTTPStatus.NOT_FOUND, body, full_page=not fragment)

    def _index(self, fragment: bool) -> Response:
        posts_by_section = load_all_posts(self.site)
        repos = self.repositories.get_top_repositories(self.site.repo_limit)
        if fragment:
            body = self.composer.index_content(posts_by_section, repos)
        else:
            body = self.composer.index_page(posts_by_section, repos)
        return Response(HTTPStatus.OK, body, full_page=not fragment)

    def _section_list(self, name: str) -> Response:
        try:
            section = coerce_section(name)
        except PostNotFoundError:
            return self.not_found(fragment=True, message=f"Unknown section: {name}")
        posts = load_section_posts(section, self.site)
        return Response(
            HTTPStatus.OK, self.composer.section_list(section, posts), full_page=False
        )

    def _post(self, name: str, slug: str, fragment: bool) -> Response:
        section = coerce_section(name)
        post = load_section_posts(section, self.site).get(slug)
        if post is None:
            return self.not_found(fragment, message=f"No {section.value} entry named '{slug}'.")
        if fragment:
            return Response(HTTPStatus.OK, self.composer.post_content(post), full_page=False)
        return Response(HTTPStatus.OK, self.composer.post_page(post))


def inject_reload_script(html: str, script: str) -> str:
    """Insert the live reload script before </body>, or append it."""
    if not script:
        return html
    if "</body>" in html:
        return html.replace("</body>", f"{script}</body>", 1)
    return html + script


class _SiteHandler(SimpleHTTPRequestHandler):
    """Request handler rendering routed pages and serving static files.

    Attributes:
        router: Router shared by all requests of a server.
        reload_script: Script injected into full pages, empty to disable.
    """

    router: RequestRouter
    reload_script = ""

    def end_headers(self):
        self.send_header("Cache-Control", "no-cache")
        self.send_header("Vary", "HX-Request")
        super().end_headers()

    def log_message(self, format, *args):
        logger.info("%s - %s", self.address_string(), format % args)

    def list_directory(self, path):  # pragma: no cover - exercised via send_head
        # Never expose directory listings.
        return self._send_response(self.router.not_found(is_fragment_request(self.headers)))

    def send_head(self):
        fragment = is_fragment_request(self.headers)
        path = unquote(urlsplit(self.path).path)
        try:
            response = self.router.dispatch(path, fragment)
        except Exception:
            logger.exception("Error handling %s", self.path)
            return self._send_response(
                Response(HTTPStatus.INTERNAL_SERVER_ERROR, "Internal Server Error",
                         content_type="text/plain; charset=utf-8", full_page=False)
            )
        if response is not None:
            return self._send_response(response)
        if not Path(self.translate_path(self.path)).exists():
            return self._send_response(self.router.not_found(fragment))
        return super().send_head()

    def _send_response(self, response: Response):
        body = response.body
        if response.full_page:
            body = inject_reload_script(body, self.reload_script)
        encoded = body.encode("utf-8")
        self.send_response(response.status)
        self.send_header("Content-type", response.content_type)
        self.send_header("Content-Length", str(len(encoded)))
        self.end_headers()
        if self.command != "HEAD":
            self.wfile.write(encoded)
        return None


class SiteServer:
    """Dynamic site server with optional live reload.

    Attributes:
        project_root: Root directory of the project.
        site: Site configuration.
        http_port: Port for the HTTP server.
        ws_port: Port for live reload websocket connections.
        live_reload: Whether to watch content and push reloads.
        router: Request router.
    """

    def __init__(
        self,
        project_root: Path,
        http_port: int | None = None,
        ws_port: int | None = None,
        repositories: RepositorySource | None = None,
        live_reload: bool = False,
        site: SiteConfig | None = None,
    ):
        self.project_root = project_root
        self.site = site or load_config(project_root)
        self.http_port = int(http_port or self.site.port)
        if ws_port is not None:
            self.ws_port = ws_port
        elif http_port is not None:
            self.ws_port = self.http_port + 1
        else:
            self.ws_port = self.site.ws_port
        self.live_reload = live_reload
        self.router = RequestRouter(
            self.site, repositories or repository_source_for(self.site)
        )
        self._reload_script = (
            RELOAD_SCRIPT_TEMPLATE.format(ws_port=self.ws_port) if live_reload else ""
        )
        self._httpd: ThreadingHTTPServer | None = None
        self._observer: Observer | None = None
        self._ws_clients: set = set()
        self._loop: asyncio.AbstractEventLoop | None = (
            asyncio.new_event_loop() if live_reload else None
        )
        self._last_reload_at = 0.0
        self._debounce_seconds = 0.2

    def handler_class(self):
        handler_cls = type(
            "_BoundSiteHandler",
            (_SiteHandler,),
            {"router": self.router, "reload_script": self._reload_script},
        )
        return functools.partial(handler_cls, directory=str(self.site.static_dir))

    def start(self) -> None:  # pragma: no cover - integration path
        if self.live_reload:
            threading.Thread(target=self._start_ws, daemon=True).start()
            self._start_watcher()
        self._httpd = ThreadingHTTPServer(("", self.http_port), self.handler_class())
        logger.info("Serving %s at http://localhost:%d", self.project_root, self.http_port)
        try:
            self._httpd.serve_forever()
        except KeyboardInterrupt:
            pass
        finally:
            self.stop()

    def stop(self) -> None:
        if self._httpd:
            self._httpd.server_close()
            self._httpd = None
        if self._observer:
            self._observer.stop()
            self._observer.join()
            self._observer = None
        if self._loop is not None:
            if self._loop.is_running():
                # The websocket thread closes the loop once it stops.
                self._loop.call_soon_threadsafe(self._loop.stop)
            elif not self._loop.is_closed():
                self._loop.close()

    def _start_ws(self) -> None:  # pragma: no cover - integration path
        asyncio.set_event_loop(self._loop)
        try:
            self._loop.run_until_complete(self._run_ws_server())
        except OSError as exc:
            logger.error("WebSocket server failed to start (port %d): %s", self.ws_port, exc)
        except RuntimeError:
            logger.debug("WebSocket server stopped")
        finally:
            self._loop.close()

    async def _run_ws_server(self) -> None:  # pragma: no cover - integration path
        async with websockets.serve(self._ws_handler, "0.0.0.0", self.ws_port):
            await asyncio.Future()  # Run forever

    async def _ws_handler(self, websocket):
        self._ws_clients.add(websocket)
        try:
            await websocket.wait_closed()
        finally:
            self._ws_clients.discard(websocket)

    def _broadcast_reload(self) -> None:
        if self._loop is None or self._loop.is_closed():
            return
        message = json.dumps({"type": "reload"})
        asyncio.run_coroutine_threadsafe(self._async_broadcast(message), self._loop)

    async def _async_broadcast(self, message: str) -> None:
        stale = set()
        for ws in list(self._ws_clients):
            try:
                await ws.send(message)
            except Exception:
                stale.add(ws)
        for ws in stale:
            self._ws_clients.discard(ws)

    def watched_paths(self) -> list[Path]:
        paths = [self.site.section_dir(section) for section in Section]
        paths.append(self.site.static_dir)
        return [p for p in paths if p.exists()]

    def _start_watcher(self) -> None:
        handler = _ChangeHandler(self)
        observer = Observer()
        for path in self.watched_paths():
            observer.schedule(handler, str(path), recursive=True)
        observer.start()
        self._observer = observer

    def notify_change(self) -> None:
        """Push a reload to connected browsers, debounced."""
        now = time.time()
        if now - self._last_reload_at < self._debounce_seconds:
            return
        self._last_reload_at = now
        logger.info("Change detected; reloading browsers")
        self._broadcast_reload()


class _ChangeHandler(FileSystemEventHandler):
    def __init__(self, server: SiteServer):
        super().__init__()
        self.server = server

    def on_any_event(self, event):
        if event.is_directory:
            return
        if any(part.startswith(".") for part in Path(event.src_path).parts):
            return
        self.server.notify_change()


class _PreviewHandler(SimpleHTTPRequestHandler):
    """Serves a build output directory with 404 pages instead of listings."""

    def log_message(self, format, *args):
        logger.info("%s - %s", self.address_string(), format % args)

    def list_directory(self, path):  # pragma: no cover - exercised via send_head
        return self._serve_404()

    def _serve_404(self):
        """Serve 404.html (when present) with a 404 status."""
        error_page = Path(self.directory) / "404.html"
        if error_page.exists():
            encoded = error_page.read_bytes()
            self.send_response(HTTPStatus.NOT_FOUND)
            self.send_header("Content-type", HTML_CONTENT_TYPE)
            self.send_header("Content-Length", str(len(encoded)))
            self.end_headers()
            if self.command != "HEAD":
                self.wfile.write(encoded)
            return None
        self.send_error(HTTPStatus.NOT_FOUND, "File not found")
        return None

    def send_head(self):
        path_obj = Path(self.translate_path(self.path))
        if path_obj.is_dir():
            if not (path_obj / "index.html").exists():
                return self._serve_404()
            # Post links carry no trailing slash; serve the index without redirecting.
            url_path = urlsplit(self.path).path
            if not url_path.endswith("/"):
                self.path = url_path + "/"
        elif not path_obj.exists():
            return self._serve_404()
        return super().send_head()


class PreviewServer:
    """Serves a built site directory.

    Attributes:
        directory: Build output directory.
        port: HTTP port.
    """

    def __init__(self, directory: Path, port: int = 3000):
        self.directory = directory
        self.port = port

    def handler_class(self):
        return functools.partial(_PreviewHandler, directory=str(self.directory))

    def start(self) -> None:  # pragma: no cover - integration path
        httpd = ThreadingHTTPServer(("", self.port), self.handler_class())
        logger.info("Serving %s at http://localhost:%d", self.directory, self.port)
        try:
            httpd.serve_forever()
        except KeyboardInterrupt:
            pass
        finally:
            httpd.server_close()
