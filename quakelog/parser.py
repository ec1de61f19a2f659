"""Parsing of Quake 3 Arena server logs into per-game kill statistics."""

from __future__ import annotations

import os
import re
from collections.abc import Iterable
from dataclasses import dataclass, field

WORLD = "<world>"

_CLIENT_USERINFO_CHANGED = re.compile(
    r"^.*?ClientUserinfoChanged: (\d+) n\\([^\\]+)\\.*playerNameIsHere>([^<]+)<\\x{005c}*t\(\d+\).*$"
    r"|^.*?ClientUserinfoChanged: (\d+) n\\(([^\\]+))\\\\t.*",
    re.ASCII,
)
_KILL = re.compile(
    r"^.*?Kill: (\d+) (\d+) (\d+): (.*) killed (.*) by (MOD_[A-Z_]+)$",
    re.ASCII,
)


@dataclass
class Player:
    """A player seen during a game."""

    name: str
    kills: int = 0


@dataclass
class Game:
    """Statistics gathered for one game, from InitGame to ShutdownGame."""

    id: int
    total_kills: int = 0
    players: dict[str, Player] = field(default_factory=dict)
    kills_by_player: dict[str, int] = field(default_factory=dict)
    kills_by_means: dict[str, int] = field(default_factory=dict)
    client_names: dict[str, str] = field(default_factory=dict)

    def _track(self, name: str) -> None:
        if name not in self.kills_by_player:
            self.kills_by_player[name] = 0
            self.players[name] = Player(name)

    def _register_client(self, client_id: str, name: str) -> None:
        self.client_names[client_id] = name
        self.kills_by_player.setdefault(name, 0)
        self.players.setdefault(name, Player(name))

    def _record_kill(self, killer: str, victim: str, means: str) -> None:
        self.total_kills += 1
        self.kills_by_means[means] = self.kills_by_means.get(means, 0) + 1

        if victim != WORLD:
            self._track(victim)

        if killer == WORLD:
            if victim != WORLD:
                self.kills_by_player[victim] -= 1
            return

        self._track(killer)
        if killer == victim:
            self.kills_by_player[killer] -= 1
        else:
            self.kills_by_player[killer] += 1


def _process_line(game: Game, line: str) -> None:
    match = _CLIENT_USERINFO_CHANGED.match(line)
    if match:
        groups = match.groups(default="")
        if groups[0] and groups[2]:
            client_id, name = groups[0], groups[2]
        elif groups[3] and groups[5]:
            client_id, name = groups[3], groups[5]
        else:
            return
        game._register_client(client_id, name.strip())
        return

    match = _KILL.match(line)
    if match:
        killer, victim, means = (part.strip() for part in match.group(4, 5, 6))
        game._record_kill(killer, victim, means)


def parse_lines(lines: Iterable[str]) -> dict[int, Game]:
    """Parse log lines into games keyed by their 1-based sequence number."""
    games: dict[int, Game] = {}
    current: Game | None = None
    counter = 0

    for raw in lines:
        line = raw.strip()
        if not line:
            continue
        if "InitGame:" in line:
            counter += 1
            current = Game(counter)
            games[counter] = current
        elif "ShutdownGame:" in line:
            current = None
        elif current is not None:
            _process_line(current, line)

    return games


def parse_log_file(file_path: str | os.PathLike[str]) -> dict[int, Game]:
    """Read and parse a log file; OSError is raised if it cannot be read."""
    with open(file_path, encoding="utf-8", errors="replace", newline="\n") as handle:
        return parse_lines(handle)