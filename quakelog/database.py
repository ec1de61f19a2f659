"""MongoDB storage for game reports."""

from __future__ import annotations

import json
import logging
import os
import sys
from collections.abc import Mapping
from typing import Any, TextIO

from pymongo import ASCENDING, MongoClient, UpdateOne
from pymongo.errors import PyMongoError

from quakelog.reporter import GameReport

DEFAULT_MONGODB_URI = "mongodb://localhost:27017"
DEFAULT_DATABASE_NAME = "quake_reports_db"
DEFAULT_GAME_REPORTS_COLLECTION = "game_reports"

_SORT_BY_ID = [("_id", ASCENDING)]

log = logging.getLogger(__name__)


class DatabaseError(Exception):
    """Raised when the database cannot be reached or an operation fails."""


def _require(collection: Any) -> None:
    if collection is None:
        raise DatabaseError("MongoDB collection is not set")


def connect_db(uri: str | None = None, timeout: float = 30.0) -> MongoClient:
    """Connect to MongoDB and ping it.

    The MONGO_URI environment variable takes precedence over ``uri``; when
    neither is given the default local address is used. The caller closes
    the returned client.
    """
    env_uri = os.environ.get("MONGO_URI", "")
    if env_uri:
        uri = env_uri
    elif not uri:
        uri = DEFAULT_MONGODB_URI

    log.info("Attempting to connect to MongoDB at: %s", uri)
    timeout_ms = max(1, int(timeout * 1000))

    try:
        client: MongoClient = MongoClient(
            uri,
            serverSelectionTimeoutMS=timeout_ms,
            connectTimeoutMS=timeout_ms,
        )
    except PyMongoError as exc:
        raise DatabaseError(f"failed to connect to MongoDB at {uri}: {exc}") from exc

    try:
        client.admin.command("ping")
    except PyMongoError as exc:
        try:
            client.close()
        except PyMongoError as close_exc:
            log.warning("Failed to disconnect after ping failure: %s", close_exc)
        raise DatabaseError(f"failed to ping MongoDB at {uri}: {exc}") from exc

    print("Successfully connected and pinged MongoDB at", uri)
    return client


def get_game_reports_collection(client: Any) -> Any:
    """Return the collection that holds game reports."""
    return client[DEFAULT_DATABASE_NAME][DEFAULT_GAME_REPORTS_COLLECTION]


def _as_document(report: GameReport | Mapping[str, Any]) -> dict[str, Any]:
    if isinstance(report, GameReport):
        document = report.to_document()
    else:
        document = dict(report)
    document.pop("_id", None)
    return document


def store_game_reports(
    collection: Any, reports: Mapping[int, GameReport | Mapping[str, Any]]
) -> None:
    """Upsert each report as its own document, using the game id as _id."""
    _require(collection)
    if not reports:
        print("No reports to store in MongoDB.")
        return

    operations = [
        UpdateOne({"_id": game_id}, {"$set": _as_document(report)}, upsert=True)
        for game_id, report in sorted(reports.items(), key=lambda item: item[0])
    ]

    try:
        result = collection.bulk_write(operations, ordered=False)
    except PyMongoError as exc:
        raise DatabaseError(f"failed to bulk write game reports to MongoDB: {exc}") from exc

    print(
        f"MongoDB BulkWrite: Inserted {result.inserted_count}, "
        f"Updated {result.modified_count}, Upserted {result.upserted_count} documents."
    )


def print_all_stored_games(collection: Any, file: TextIO | None = None) -> None:
    """Print every stored document as indented JSON, in game id order."""
    _require(collection)
    out = sys.stdout if file is None else file
    print(
        f"\n--- All Stored Game Reports from MongoDB collection "
        f"'{DEFAULT_GAME_REPORTS_COLLECTION}' (Sorted by Game ID) ---",
        file=out,
    )

    found_any = False
    try:
        for document in collection.find({}, sort=_SORT_BY_ID):
            found_any = True
            try:
                text = json.dumps(dict(document), indent=2, sort_keys=True, default=str)
            except (TypeError, ValueError) as exc:
                log.warning("Error marshalling document to JSON: %s", exc)
                continue
            print(text, file=out)
    except PyMongoError as exc:
        raise DatabaseError(f"failed to read documents from MongoDB: {exc}") from exc

    if not found_any:
        print("No game reports found in the collection.", file=out)


def get_all_game_reports(collection: Any) -> list[GameReport]:
    """Return all stored reports sorted by game id; empty list if none."""
    _require(collection)
    try:
        documents = list(collection.find({}, sort=_SORT_BY_ID))
    except PyMongoError as exc:
        raise DatabaseError(f"failed to find documents in MongoDB: {exc}") from exc

    try:
        return [GameReport.from_document(document) for document in documents]
    except (TypeError, ValueError, AttributeError) as exc:
        raise DatabaseError(
            f"failed to decode documents into game reports: {exc}"
        ) from exc


def get_game_report_by_id(collection: Any, game_id: int) -> GameReport | None:
    """Return the report with this id, or None if there is none."""
    _require(collection)
    try:
        document = collection.find_one({"_id": game_id})
    except PyMongoError as exc:
        raise DatabaseError(
            f"failed to find or decode game report with ID {game_id}: {exc}"
        ) from exc
    if document is None:
        return None
    try:
        return GameReport.from_document(document)
    except (TypeError, ValueError, AttributeError) as exc:
        raise DatabaseError(
            f"failed to find or decode game report with ID {game_id}: {exc}"
        ) from exc


def delete_game_report_by_id(collection: Any, game_id: int) -> int:
    """Delete one report; return how many documents went (0 or 1)."""
    _require(collection)
    try:
        result = collection.delete_one({"_id": game_id})
    except PyMongoError as exc:
        raise DatabaseError(f"failed to delete game report with ID {game_id}: {exc}") from exc
    return result.deleted_count


def delete_all_game_reports(collection: Any) -> int:
    """Remove every document from the collection; return how many went."""
    _require(collection)
    name = collection.name
    print(
        f"\nAttempting to delete all documents from collection "
        f"'{name}' ({DEFAULT_GAME_REPORTS_COLLECTION})..."
    )
    try:
        result = collection.delete_many({})
    except PyMongoError as exc:
        raise DatabaseError(
            f"failed to delete documents from collection '{name}': {exc}"
        ) from exc
    print(f"Successfully deleted {result.deleted_count} document(s) from collection '{name}'.")
    return result.deleted_count