"""Game reports built from parsed games, and their JSON presentation."""

from __future__ import annotations

import json
import sys
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, TextIO

from quakelog.parser import WORLD, Game

_HTML_ESCAPES = {
    "&": "\\u0026",
    "<": "\\u003c",
    ">": "\\u003e",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}


def _marshal_indent(value: Any) -> str:
    text = json.dumps(value, indent=2, ensure_ascii=False)
    for char, escaped in _HTML_ESCAPES.items():
        text = text.replace(char, escaped)
    return text


def _sorted_counts(counts: Mapping[str, int]) -> dict[str, int]:
    return dict(sorted(counts.items()))


@dataclass
class RankedPlayer:
    """A player's name and score for a ranking."""

    name: str
    score: int = 0


@dataclass
class GameReport:
    """The summary of one game."""

    id: int
    total_kills: int = 0
    players: list[str] = field(default_factory=list)
    kills: dict[str, int] = field(default_factory=dict)
    kills_by_means: dict[str, int] = field(default_factory=dict)

    def to_json(self) -> dict[str, Any]:
        """Return the JSON form; kills_by_means is left out when empty."""
        data: dict[str, Any] = {
            "id": self.id,
            "total_kills": self.total_kills,
            "players": list(self.players),
            "kills": _sorted_counts(self.kills),
        }
        if self.kills_by_means:
            data["kills_by_means"] = _sorted_counts(self.kills_by_means)
        return data

    def to_document(self) -> dict[str, Any]:
        """Return the database document, keyed by _id."""
        document: dict[str, Any] = {
            "_id": self.id,
            "total_kills": self.total_kills,
            "players": list(self.players),
            "kills": dict(self.kills),
        }
        if self.kills_by_means:
            document["kills_by_means"] = dict(self.kills_by_means)
        return document

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> GameReport:
        """Build a report from a stored document; missing fields are zero."""
        return cls(
            id=int(document.get("_id", 0)),
            total_kills=int(document.get("total_kills", 0)),
            players=[str(name) for name in document.get("players") or []],
            kills={str(k): int(v) for k, v in (document.get("kills") or {}).items()},
            kills_by_means={
                str(k): int(v) for k, v in (document.get("kills_by_means") or {}).items()
            },
        )


@dataclass
class PlayerRankEntry:
    """A player's total kills across all games."""

    player_name: str
    total_kills: int = 0

    def to_json(self) -> dict[str, Any]:
        return {"player_name": self.player_name, "total_kills": self.total_kills}


def format_game_data(games: Mapping[int, Game]) -> dict[int, GameReport]:
    """Turn parsed games into reports keyed by game id."""
    reports: dict[int, GameReport] = {}
    for game_id, game in games.items():
        reports[game_id] = GameReport(
            id=game_id,
            total_kills=game.total_kills,
            players=sorted(name for name in game.players if name != WORLD),
            kills=dict(game.kills_by_player),
            kills_by_means=dict(game.kills_by_means),
        )
    return reports


def print_game_reports(reports: Mapping[int, GameReport], file: TextIO | None = None) -> None:
    """Write the reports as indented JSON, keyed by game id."""
    out = sys.stdout if file is None else file
    print("\n--- Game Reports (Console Output) ---", file=out)
    if not reports:
        print("No game data to report.", file=out)
        return
    payload = {
        str(game_id): report.to_json()
        for game_id, report in sorted(reports.items(), key=lambda item: str(item[0]))
    }
    print(_marshal_indent(payload), file=out)