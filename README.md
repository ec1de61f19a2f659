# quakelog

Turns Quake 3 Arena server logs into game statistics. For each match it records
who played, how many kills there were, each player's score and the means of
death. The reports are stored in MongoDB and served over a small JSON HTTP API
built with Flask.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Running the server

```
quakelog
```

Options:

- `--host` sets the address to listen on. The default is `0.0.0.0`.
- `--port` sets the port to listen on. The default is `8080`.

The server first connects to MongoDB and pings it. It uses
`mongodb://localhost:27017` unless the `MONGO_URI` environment variable names
another address. If the connection fails, the command prints the error and
exits with status 1. Reports go to the `game_reports` collection of the
`quake_reports_db` database.

The same server can also be started with `python -m quakelog.api`.

## How logs are read

- A line containing `InitGame:` starts a new game. Games are numbered from 1 in
  the order they appear.
- A line containing `ShutdownGame:` ends the current game.
- Lines outside a game are ignored.
- Inside a game, `ClientUserinfoChanged:` lines register players.
  `Kill: <killer> <victim> <mod>: A killed B by MOD_...` lines count kills.

Scoring works as follows:

- Every kill adds one to the game's `total_kills`.
- Every kill adds one to the count for its means of death.
- A kill scores one point for the killer.
- A death by `<world>` costs the victim one point.
- A suicide costs the player one point.
- `<world>` never appears as a player.

## HTTP API

| Method | Path              | What it does                                                  |
|--------|-------------------|---------------------------------------------------------------|
| POST   | `/games/upload`   | Upload a log file (form field `logFile`), parse it and store its games |
| GET    | `/games`          | All stored game reports, sorted by game ID                    |
| GET    | `/games/<id>`     | One game report                                               |
| DELETE | `/games`          | Remove every stored report                                    |
| DELETE | `/games/<id>`     | Remove one report                                             |
| GET    | `/playersranking` | Players ranked by their total kills across all stored games   |

A game report looks like this:

```json
{
  "id": 1,
  "total_kills": 4,
  "players": ["Isgalamido", "Mocinha"],
  "kills": {"Isgalamido": 2, "Mocinha": -1},
  "kills_by_means": {"MOD_ROCKET": 2, "MOD_TRIGGER_HURT": 2}
}
```

In a report:

- `players` is sorted by name.
- `kills_by_means` is left out when the game had no kills.

Uploads behave as follows:

- An upload that stores games answers 201 with a message and `games_processed`.
- A log with no games answers 200 with `games_processed` set to 0.
- Uploading a game ID that is already stored replaces that report.

A ranking entry has the form `{"player_name": ..., "total_kills": ...}`. The
ranking is sorted by total kills, highest first. When no reports are stored,
`/playersranking` returns `null`.

Errors come back as `{"error": "..."}` with these status codes:

- 400 for a malformed game ID, a missing `logFile` field or an unreadable upload.
- 404 for an unknown game.
- 500 for database failures.

Cross-origin requests are allowed from `http://localhost:8000` and
`http://localhost:8080`. Requests from any other origin are refused with 403.

## Using it as a library

```python
from quakelog.parser import parse_log_file
from quakelog.reporter import format_game_data, print_game_reports

games = parse_log_file("games.log")
reports = format_game_data(games)
print_game_reports(reports)
```

The package has four modules:

- `quakelog.parser` holds `Game`, `Player`, `parse_lines` and
  `parse_log_file`. `parse_lines` takes any iterable of log lines.
- `quakelog.reporter` holds the report types: `GameReport`, with `to_json`,
  `to_document` and `from_document`, plus `PlayerRankEntry` and
  `RankedPlayer`. It also holds `format_game_data` and `print_game_reports`.
- `quakelog.database` holds the MongoDB helpers: `connect_db`,
  `get_game_reports_collection`, `store_game_reports`,
  `get_all_game_reports`, `get_game_report_by_id`,
  `delete_game_report_by_id`, `delete_all_game_reports` and
  `print_all_stored_games`. Failures raise `DatabaseError`.
- `quakelog.api` holds `create_app(collection)`, which builds the Flask
  application around a collection. It also holds `rank_players(reports)` and
  `main`.

## What it does not do

The server publishes no API description or interactive documentation page;
the table above is the reference. There is no command that parses a log and
prints its reports without a database. For that, use `parse_log_file` and
`print_game_reports` as shown above.