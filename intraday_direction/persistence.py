from __future__ import annotations

import json
import sqlite3
import time
from typing import Any

from intraday_direction.config import RunConfig
from intraday_direction.models import SignalEvent


class SqliteStore:
    """
    Run log, emitted signals and the latest strategy snapshot per symbol.

    Signals are keyed by (symbol, bar timestamp, signal type) so replaying a
    feed after a resume never records the same intent twice.
    """

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        self._conn = sqlite3.connect(db_path)
        self._conn.execute("PRAGMA foreign_keys=ON;")
        self._conn.execute("PRAGMA journal_mode=WAL;")
        self._conn.execute("PRAGMA synchronous=NORMAL;")
        self._ensure_schema()

    def close(self) -> None:
        self._conn.close()

    def start_run(self, cfg: RunConfig) -> int:
        config_json = json.dumps(
            _to_jsonable({"symbol": cfg.symbol, "strategy": cfg.strategy.to_dict()}),
            sort_keys=True,
        )
        cur = self._conn.cursor()
        cur.execute(
            "INSERT INTO runs(started_epoch_s, symbol, config_json) VALUES(?, ?, ?)",
            (time.time(), str(cfg.symbol), config_json),
        )
        self._conn.commit()
        return int(cur.lastrowid)

    def end_run(self, run_id: int, *, bars_processed: int = 0) -> None:
        self._conn.execute(
            "UPDATE runs SET ended_epoch_s=?, bars_processed=? WHERE id=?",
            (time.time(), int(bars_processed), int(run_id)),
        )
        self._conn.commit()

    def log_signal(self, run_id: int, symbol: str, event: SignalEvent) -> bool:
        """Record a signal; returns False when it was already recorded."""
        cur = self._conn.execute(
            "INSERT OR IGNORE INTO signals(run_id, ts_epoch_s, symbol, bar_ts, signal_type, tag, price, direction, strength) "
            "VALUES(?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                int(run_id),
                time.time(),
                str(symbol),
                event.timestamp.isoformat(),
                event.signal_type.value,
                event.tag,
                float(event.price),
                event.direction.value,
                event.strength,
            ),
        )
        self._conn.commit()
        return cur.rowcount > 0

    def list_signals(self, symbol: str) -> list[SignalEvent]:
        cur = self._conn.execute(
            "SELECT signal_type, bar_ts, price, tag, direction, strength FROM signals WHERE symbol=? ORDER BY bar_ts, id",
            (str(symbol),),
        )
        return [
            SignalEvent.from_dict(
                {
                    "signal_type": row[0],
                    "timestamp": row[1],
                    "price": row[2],
                    "tag": row[3],
                    "direction": row[4],
                    "strength": row[5],
                }
            )
            for row in cur.fetchall()
        ]

    def save_state(self, symbol: str, state: dict[str, Any]) -> None:
        last_bar = state.get("last_bar") or {}
        self._conn.execute(
            "INSERT INTO engine_state(symbol, updated_epoch_s, last_bar_ts, state_json) VALUES(?, ?, ?, ?) "
            "ON CONFLICT(symbol) DO UPDATE SET updated_epoch_s=excluded.updated_epoch_s, "
            "last_bar_ts=excluded.last_bar_ts, state_json=excluded.state_json",
            (str(symbol), time.time(), last_bar.get("timestamp"), json.dumps(_to_jsonable(state), sort_keys=True)),
        )
        self._conn.commit()

    def load_state(self, symbol: str) -> dict[str, Any] | None:
        cur = self._conn.execute("SELECT state_json FROM engine_state WHERE symbol=?", (str(symbol),))
        row = cur.fetchone()
        return json.loads(row[0]) if row else None

    def log_error(self, run_id: int, *, where: str, message: str) -> None:
        self._conn.execute(
            "INSERT INTO errors(run_id, ts_epoch_s, where_text, message) VALUES(?, ?, ?, ?)",
            (int(run_id), time.time(), str(where), str(message)),
        )
        self._conn.commit()

    def _ensure_schema(self) -> None:
        self._conn.executescript(
            """
            CREATE TABLE IF NOT EXISTS schema_version(
                version INTEGER NOT NULL
            );

            CREATE TABLE IF NOT EXISTS runs(
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                started_epoch_s REAL NOT NULL,
                ended_epoch_s REAL,
                symbol TEXT NOT NULL,
                bars_processed INTEGER,
                config_json TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS signals(
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                run_id INTEGER NOT NULL,
                ts_epoch_s REAL NOT NULL,
                symbol TEXT NOT NULL,
                bar_ts TEXT NOT NULL,
                signal_type TEXT NOT NULL,
                tag TEXT NOT NULL,
                price REAL NOT NULL,
                direction TEXT,
                strength REAL,
                UNIQUE(symbol, bar_ts, signal_type),
                FOREIGN KEY(run_id) REFERENCES runs(id)
            );

            CREATE INDEX IF NOT EXISTS idx_signals_symbol ON signals(symbol);

            CREATE TABLE IF NOT EXISTS engine_state(
                symbol TEXT PRIMARY KEY,
                updated_epoch_s REAL NOT NULL,
                last_bar_ts TEXT,
                state_json TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS errors(
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                run_id INTEGER NOT NULL,
                ts_epoch_s REAL NOT NULL,
                where_text TEXT NOT NULL,
                message TEXT NOT NULL,
                FOREIGN KEY(run_id) REFERENCES runs(id)
            );
            """
        )
        cur = self._conn.execute("SELECT COUNT(*) FROM schema_version")
        if int(cur.fetchone()[0]) == 0:
            self._conn.execute("INSERT INTO schema_version(version) VALUES(1)")
        self._conn.commit()


def _to_jsonable(obj: Any) -> Any:
    if isinstance(obj, dict):
        return {str(k): _to_jsonable(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_to_jsonable(v) for v in obj]
    if isinstance(obj, (str, int, float, bool)) or obj is None:
        return obj
    return str(obj)
