"""HTTP API for uploading Quake logs and querying the stored game reports."""

from __future__ import annotations

import argparse
import logging
import os
import re
import sys
import tempfile
from collections.abc import Iterable, Sequence
from dataclasses import asdict, dataclass
from typing import Any

from flask import Flask, Response, jsonify, request

from quakelog.database import (
    DEFAULT_MONGODB_URI,
    DatabaseError,
    connect_db,
    delete_all_game_reports,
    delete_game_report_by_id,
    get_all_game_reports,
    get_game_report_by_id,
    get_game_reports_collection,
    store_game_reports,
)
from quakelog.parser import parse_log_file
from quakelog.reporter import GameReport, PlayerRankEntry, format_game_data

log = logging.getLogger(__name__)

ALLOWED_ORIGINS = ("http://localhost:8000", "http://localhost:8080")
ALLOWED_METHODS = ("GET", "POST", "PUT", "DELETE", "OPTIONS")
ALLOWED_HEADERS = ("Origin", "Content-Type", "Accept", "Authorization")
PREFLIGHT_MAX_AGE = 12 * 60 * 60

_INT_PATTERN = re.compile(r"[+-]?\d+", re.ASCII)
_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1


@dataclass
class ErrorResponse:
    """Body of an error response."""

    error: str


@dataclass
class SuccessResponse:
    """Body of a response that carries only a message."""

    message: str


@dataclass
class UploadResponse:
    """Body of a response to a log upload."""

    message: str
    games_processed: int


def _parse_game_id(text: str) -> int:
    if not _INT_PATTERN.fullmatch(text):
        raise ValueError(f"invalid game id: {text!r}")
    value = int(text)
    if not _INT64_MIN <= value <= _INT64_MAX:
        raise ValueError(f"game id out of range: {text!r}")
    return value


def _reply(body: Any, status: int) -> tuple[Response, int]:
    return jsonify(asdict(body)), status


def _error(message: str, status: int) -> tuple[Response, int]:
    return _reply(ErrorResponse(message), status)


def rank_players(reports: Iterable[GameReport]) -> list[PlayerRankEntry]:
    """Sum each player's kills over all reports, highest total first."""
    totals: dict[str, int] = {}
    for report in reports:
        for player, kills in report.kills.items():
            totals[player] = totals.get(player, 0) + kills
    ranks = [PlayerRankEntry(player, total) for player, total in totals.items()]
    ranks.sort(key=lambda entry: entry.total_kills, reverse=True)
    return ranks


def _cross_origin() -> str | None:
    """Return the request's Origin when it is a cross-origin request."""
    origin = request.headers.get("Origin", "")
    if not origin:
        return None
    if origin in (f"http://{request.host}", f"https://{request.host}"):
        return None
    return origin


def _install_cors(app: Flask) -> None:
    @app.before_request
    def _check_origin() -> Response | None:
        origin = _cross_origin()
        if origin is None:
            return None
        if origin not in ALLOWED_ORIGINS:
            return Response(status=403)
        if request.method == "OPTIONS":
            response = Response(status=204)
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Access-Control-Allow-Methods"] = ",".join(ALLOWED_METHODS)
            response.headers["Access-Control-Allow-Headers"] = ",".join(ALLOWED_HEADERS)
            response.headers["Access-Control-Max-Age"] = str(PREFLIGHT_MAX_AGE)
            response.vary.add("Origin")
            response.vary.add("Access-Control-Request-Method")
            response.vary.add("Access-Control-Request-Headers")
            return response
        return None

    @app.after_request
    def _add_origin(response: Response) -> Response:
        origin = _cross_origin()
        if origin in ALLOWED_ORIGINS and request.method != "OPTIONS":
            response.headers["Access-Control-Allow-Origin"] = origin
            response.vary.add("Origin")
        return response


def create_app(collection: Any) -> Flask:
    """Build the web application serving reports from ``collection``."""
    app = Flask(__name__)
    app.json.sort_keys = False  # keep field order of the report types
    _install_cors(app)

    @app.get("/games/<game_id>")
    def get_game(game_id: str):
        try:
            gid = _parse_game_id(game_id)
        except ValueError:
            return _error("Invalid game ID format", 400)
        try:
            report = get_game_report_by_id(collection, gid)
        except DatabaseError as exc:
            log.error("Error retrieving game ID %d from database: %s", gid, exc)
            return _error("Failed to retrieve game data", 500)
        if report is None:
            return _error(f"Game with ID {gid} not found", 404)
        return jsonify(report.to_json()), 200

    @app.get("/games")
    def get_all_games():
        try:
            reports = get_all_game_reports(collection)
        except DatabaseError as exc:
            log.error("Error retrieving all game reports from database: %s", exc)
            return _error("Failed to retrieve game reports", 500)
        return jsonify([report.to_json() for report in reports]), 200

    @app.post("/games/upload")
    def upload_log():
        upload = request.files.get("logFile")
        if upload is None:
            return _error("Error retrieving uploaded file: http: no such file", 400)

        try:
            handle = tempfile.NamedTemporaryFile(
                prefix="upload-", suffix=".log", delete=False
            )
        except OSError as exc:
            return _error(f"Error creating temporary file: {exc}", 500)

        temp_path = handle.name
        try:
            try:
                with handle:
                    upload.save(handle)
                    handle.flush()
                    try:
                        os.fsync(handle.fileno())
                    except OSError as exc:
                        log.warning(
                            "Warning: failed to sync temporary file %s: %s", temp_path, exc
                        )
            except OSError as exc:
                return _error(f"Error copying to temporary file: {exc}", 500)

            try:
                games = parse_log_file(temp_path)
            except (OSError, UnicodeError) as exc:
                return _error(f"Error parsing log file: {exc}", 400)
        finally:
            try:
                os.remove(temp_path)
            except OSError:
                pass

        if not games:
            return _reply(
                UploadResponse("Log file processed. No games found to report.", 0), 200
            )

        reports = format_game_data(games)
        try:
            store_game_reports(collection, reports)
        except DatabaseError as exc:
            return _error(f"Error storing game reports: {exc}", 500)

        count = len(reports)
        return _reply(
            UploadResponse(
                f"Log file processed and {count} game(s) stored successfully.", count
            ),
            201,
        )

    @app.delete("/games")
    def delete_all_games():
        try:
            delete_all_game_reports(collection)
        except DatabaseError as exc:
            log.error("Error deleting all game reports from database: %s", exc)
            return _error("Failed to delete all game reports", 500)
        return _reply(SuccessResponse("All game reports deleted successfully"), 200)

    @app.delete("/games/<game_id>")
    def delete_game(game_id: str):
        try:
            gid = _parse_game_id(game_id)
        except ValueError:
            return _error("Invalid game ID format", 400)
        try:
            deleted = delete_game_report_by_id(collection, gid)
        except DatabaseError as exc:
            log.error("Error deleting game ID %d from database: %s", gid, exc)
            return _error("Failed to delete game report", 500)
        if deleted == 0:
            return _error(f"Game with ID {gid} not found", 404)
        return _reply(SuccessResponse(f"Game with ID {gid} deleted successfully"), 200)

    @app.get("/playersranking")
    def players_ranking():
        try:
            reports = get_all_game_reports(collection)
        except DatabaseError as exc:
            log.error("Error retrieving all game reports for ranking: %s", exc)
            return _error("Failed to retrieve data for player rankings", 500)
        ranks = rank_players(reports)
        # An empty ranking is sent as null, not as an empty list.
        body = [entry.to_json() for entry in ranks] if ranks else None
        return jsonify(body), 200

    return app


def main(argv: Sequence[str] | None = None) -> int:
    """Connect to MongoDB and serve the API."""
    parser = argparse.ArgumentParser(description="Quake Log Parser API server.")
    parser.add_argument("--host", default="0.0.0.0", help="address to listen on")
    parser.add_argument("--port", type=int, default=8080, help="port to listen on")
    args = parser.parse_args(argv)

    print("Quake Log Parser API")
    try:
        client = connect_db(DEFAULT_MONGODB_URI, timeout=30.0)
    except DatabaseError as exc:
        print(f"Failed to connect to MongoDB: {exc}", file=sys.stderr)
        return 1

    try:
        collection = get_game_reports_collection(client)
        print("MongoDB connected. Setting up API server...")
        print(f"Starting API server on port {args.port}...")
        app = create_app(collection)
        try:
            app.run(host=args.host, port=args.port)
        except OSError as exc:
            print(f"Failed to run server: {exc}", file=sys.stderr)
            return 1
    finally:
        try:
            client.close()
        except Exception as exc:  # closing must not mask the outcome
            log.warning("Failed to disconnect from MongoDB: %s", exc)
        print("Disconnected from MongoDB.")
    return 0


if __name__ == "__main__":
    sys.exit(main())