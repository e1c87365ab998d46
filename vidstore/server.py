"""The HTTP server: static files, assets, video lookup and admin reset."""

from __future__ import annotations

import argparse
import logging
import os
import sqlite3
import uuid
from typing import Any, Callable, Iterable, Optional, Sequence

from dotenv import load_dotenv
from werkzeug.exceptions import HTTPException, NotFound
from werkzeug.routing import Map, Rule
from werkzeug.security import safe_join
from werkzeug.serving import run_simple
from werkzeug.utils import send_from_directory
from werkzeug.wrappers import Request, Response

from .config import ApiConfig, ConfigError, load_config
from .database import Client
from .responses import error_response, json_response

log = logging.getLogger(__name__)

WSGIApp = Callable[[dict, Callable], Iterable[bytes]]


def no_cache_middleware(app: WSGIApp) -> WSGIApp:
    """Wrap a WSGI app so every response carries Cache-Control: no-store."""

    def wrapped(environ: dict, start_response: Callable) -> Iterable[bytes]:
        def _start(status: str, headers: list, exc_info: Any = None) -> Any:
            headers = [(k, v) for k, v in headers if k.lower() != "cache-control"]
            headers.append(("Cache-Control", "no-store"))
            return start_response(status, headers, exc_info)

        return app(environ, _start)

    return wrapped


def _static_app(root: str) -> WSGIApp:
    """Serve files below root, using index.html for directories."""

    def app(environ: dict, start_response: Callable) -> Iterable[bytes]:
        path = environ.get("vidstore.static_path", "")
        full = safe_join(root, path) if path else root
        if full is None:
            return NotFound()(environ, start_response)
        if os.path.isdir(full):
            path = f"{path.rstrip('/')}/index.html" if path else "index.html"
        try:
            response = send_from_directory(root, path, environ)
        except HTTPException as exc:
            return exc(environ, start_response)
        return response(environ, start_response)

    return app


class _Application:
    def __init__(self, config: ApiConfig, db: Client) -> None:
        self.config = config
        self.db = db
        self.url_map = Map(
            [
                Rule("/app/", endpoint="app", defaults={"path": ""}),
                Rule("/app/<path:path>", endpoint="app"),
                Rule("/assets/", endpoint="assets", defaults={"path": ""}),
                Rule("/assets/<path:path>", endpoint="assets"),
                Rule("/api/videos/<video_id>", endpoint="video_get", methods=["GET"]),
                Rule("/admin/reset", endpoint="reset", methods=["POST"]),
            ]
        )
        self._app_files = _static_app(config.filepath_root)
        self._asset_files = no_cache_middleware(_static_app(config.assets_root))

    def __call__(self, environ: dict, start_response: Callable) -> Iterable[bytes]:
        adapter = self.url_map.bind_to_environ(environ)
        try:
            endpoint, values = adapter.match()
        except HTTPException as exc:
            return exc(environ, start_response)
        if endpoint in ("app", "assets"):
            environ["vidstore.static_path"] = values["path"]
            files = self._app_files if endpoint == "app" else self._asset_files
            return files(environ, start_response)
        request = Request(environ)
        if endpoint == "video_get":
            response = self.video_get(request, values["video_id"])
        else:
            response = self.reset(request)
        return response(environ, start_response)

    def video_get(self, request: Request, video_id_text: str) -> Response:
        try:
            video_id = uuid.UUID(video_id_text)
        except ValueError as exc:
            return error_response(400, "Invalid video ID", exc)
        try:
            video = self.db.get_video(video_id)
        except sqlite3.Error as exc:
            return error_response(404, "Couldn't get video", exc)
        if video is None:
            return error_response(404, "Couldn't get video", None)
        return json_response(200, video)

    def reset(self, request: Request) -> Response:
        text = "text/plain; charset=utf-8"
        if self.config.platform != "dev":
            return Response(
                "Reset is only allowed in dev environment.", status=403, content_type=text
            )
        try:
            self.db.reset()
        except sqlite3.Error as exc:
            return error_response(500, "Couldn't reset database", exc)
        return Response("Database reset to initial state", status=200, content_type=text)


def create_app(config: ApiConfig, db: Client) -> WSGIApp:
    """Return the WSGI application serving the API and static files."""
    return _Application(config, db)


def main(argv: Optional[Sequence[str]] = None) -> None:
    """Load settings, open the database and serve until stopped."""
    argparse.ArgumentParser(description="Serve the video storage API.").parse_args(argv)
    logging.basicConfig(level=logging.INFO)
    load_dotenv(".env")

    try:
        config = load_config()
    except ConfigError as exc:
        log.critical("%s", exc)
        raise SystemExit(1) from exc

    try:
        db = Client(config.db_path)
    except sqlite3.Error as exc:
        log.critical("Couldn't connect to database: %s", exc)
        raise SystemExit(1) from exc

    try:
        config.ensure_assets_dir()
    except OSError as exc:
        log.critical("Couldn't create assets directory: %s", exc)
        raise SystemExit(1) from exc

    try:
        port = int(config.port)
    except ValueError as exc:
        log.critical("invalid port %r", config.port)
        raise SystemExit(1) from exc

    app = create_app(config, db)
    log.info("Serving on: http://localhost:%s/app/", config.port)
    with db:
        run_simple("0.0.0.0", port, app, threaded=True)