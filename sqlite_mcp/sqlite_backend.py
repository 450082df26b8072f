"""SQLite query executor owning the single database handle.

Behaviour:
    - Exactly one connection per process, opened at construction, autocommit
      (each statement commits on its own; no transaction wrapping here)
    - Environment driven tuning with clamping + sanity logging
    - Engine failures re-raised as EngineError with the engine message verbatim
    - Health check helper + optional integrity_check (VERIFY_ON_CONNECT=1)
    - Clear error for directory path misuse
No extra locking: sqlite3 serializes access to the one connection itself.
"""
from __future__ import annotations
import sqlite3, os
from dataclasses import dataclass
from typing import Any, Optional, Dict, List

from .base_backend import AffectedCount, Row
from .errors import EngineError
from .logging_util import warn, debug

MAX_CACHE_KIB = 512 * 1024        # 512 MiB upper clamp
MIN_CACHE_KIB = 16                # SQLite minimum practical
DEFAULT_CACHE_KIB = 64 * 1024     # 64 MiB
MAX_BUSY_TIMEOUT_MS = 600_000
DEFAULT_BUSY_TIMEOUT_MS = 5000

LIST_TABLES_SQL = "SELECT name FROM sqlite_master WHERE type='table'"

@dataclass
class BackendConfig:
    cache_kib: int = DEFAULT_CACHE_KIB
    busy_timeout_ms: int = DEFAULT_BUSY_TIMEOUT_MS
    foreign_keys: bool = False
    verify_on_connect: bool = False

    @classmethod
    def from_env(cls) -> "BackendConfig":
        def _int(name: str, default: int) -> int:
            raw = os.environ.get(name)
            if raw is None:
                return default
            try:
                return int(raw)
            except ValueError:
                warn("invalid_env_int", key=name, value=raw, default=default)
                return default
        cache_kib = _int("CACHE_SIZE_KIB", DEFAULT_CACHE_KIB)
        busy_ms = _int("BUSY_TIMEOUT_MS", DEFAULT_BUSY_TIMEOUT_MS)
        foreign_keys = os.environ.get("FOREIGN_KEYS", "0") == "1"
        verify = os.environ.get("VERIFY_ON_CONNECT", "0") == "1"
        # Clamp
        adjusted = {}
        if cache_kib < MIN_CACHE_KIB or cache_kib > MAX_CACHE_KIB:
            adjusted["cache_kib"] = cache_kib
            cache_kib = min(MAX_CACHE_KIB, max(MIN_CACHE_KIB, cache_kib))
        if busy_ms < 0 or busy_ms > MAX_BUSY_TIMEOUT_MS:
            adjusted["busy_timeout_ms"] = busy_ms
            busy_ms = min(MAX_BUSY_TIMEOUT_MS, max(0, busy_ms))
        if adjusted:
            final_values = {"cache_kib": cache_kib, "busy_timeout_ms": busy_ms}
            warn("backend_config_clamped", original=adjusted, clamped=final_values)
        return cls(cache_kib=cache_kib, busy_timeout_ms=busy_ms, foreign_keys=foreign_keys, verify_on_connect=verify)


def quote_identifier(name: str) -> str:
    """Double-quote an SQL identifier, doubling embedded quotes."""
    return '"' + name.replace('"', '""') + '"'


class SQLiteBackend:
    """SQLite query executor.

    Responsibilities:
      - Own the one connection for the process lifetime
      - Apply tuned pragmas with safe clamping
      - Execute read / write / introspection statements
      - Health check utility
    """
    def __init__(self, path: str, config: Optional[BackendConfig] = None):
        if os.path.isdir(path):  # directory misuse
            raise ValueError(f"Path points to a directory, expected file: {path}")
        self.path = path
        self.config = config or BackendConfig.from_env()
        try:
            # check_same_thread off: the MCP runtime may hand calls to another thread
            self._conn: Optional[sqlite3.Connection] = sqlite3.connect(
                path, isolation_level=None, check_same_thread=False
            )
        except sqlite3.Error as e:
            raise EngineError(str(e)) from e
        self._conn.row_factory = sqlite3.Row
        self._apply_pragmas(self._conn)
        if self.config.verify_on_connect:
            try:
                res = self._conn.execute("PRAGMA integrity_check").fetchone()[0]
            except sqlite3.Error as e:
                self.close()
                raise EngineError(str(e)) from e
            if res != "ok":
                warn("integrity_check_failed", path=self.path, result=res)

    # --- Public API -----------------------------------------------------------------
    @property
    def connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise EngineError("Database handle is closed")
        return self._conn

    def execute_read(self, sql: str) -> List[Row]:
        """Run a statement and return its rows as dicts, in engine order."""
        return self._query(sql)

    def execute_write(self, sql: str) -> AffectedCount:
        """Run a mutating statement; DDL reports 0 affected rows."""
        try:
            cur = self.connection.execute(sql)
        except sqlite3.Error as e:
            raise EngineError(str(e)) from e
        try:
            # rowcount is -1 for statements that change no rows (DDL)
            return AffectedCount(affected_rows=max(cur.rowcount, 0))
        finally:
            cur.close()

    def list_tables(self) -> List[Row]:
        return self._query(LIST_TABLES_SQL)

    def describe_table(self, table_name: str) -> List[Row]:
        """Return PRAGMA table_info rows (cid, name, type, notnull, dflt_value, pk)."""
        return self._query(f"PRAGMA table_info({quote_identifier(table_name)})")

    def health_check(self) -> Dict[str, Any]:
        """Return current core pragma values and basic status."""
        try:
            conn = self.connection
            rows = {
                "foreign_keys": conn.execute("PRAGMA foreign_keys").fetchone()[0],
                "journal_mode": conn.execute("PRAGMA journal_mode").fetchone()[0],
                "cache_size": conn.execute("PRAGMA cache_size").fetchone()[0],
                "busy_timeout": conn.execute("PRAGMA busy_timeout").fetchone()[0],
                "sqlite_version": sqlite3.sqlite_version,
            }
        except (sqlite3.Error, EngineError) as e:
            return {"ok": False, "path": self.path, "error": str(e)}
        return {"ok": True, "path": self.path, **rows}

    def close(self) -> None:
        if self._conn is None:
            return
        self._conn.close()
        self._conn = None

    # --- Internal -------------------------------------------------------------------
    def _query(self, sql: str, params: tuple = ()) -> List[Row]:
        try:
            cur = self.connection.execute(sql, params)
            try:
                return [dict(row) for row in cur.fetchall()]
            finally:
                cur.close()
        except sqlite3.Error as e:
            raise EngineError(str(e)) from e

    def _apply_pragmas(self, conn: sqlite3.Connection) -> None:
        pragmas = [
            (f"cache_size=-{self.config.cache_kib}", "cache_size"),  # negative => KiB
            (f"busy_timeout={self.config.busy_timeout_ms}", "busy_timeout"),
        ]
        if self.config.foreign_keys:
            pragmas.append(("foreign_keys=ON", "foreign_keys"))
        for p, tag in pragmas:
            try:
                conn.execute(f"PRAGMA {p}")
            except sqlite3.Error as e:
                warn("pragma_failed", pragma=p, tag=tag, path=self.path, error=str(e))
        debug("backend_opened", path=self.path, cache_kib=self.config.cache_kib,
              busy_timeout_ms=self.config.busy_timeout_ms, foreign_keys=self.config.foreign_keys)


def cli_dump_config(argv: Optional[List[str]] = None):  # pragma: no cover - thin CLI wrapper
    """CLI helper: print resolved BackendConfig + health_check JSON."""
    import argparse, json
    ap = argparse.ArgumentParser(description='Dump backend config and health info')
    ap.add_argument('db', help='Path to SQLite database')
    args = ap.parse_args(argv)
    be = SQLiteBackend(args.db)
    try:
        out = {'config': be.config.__dict__.copy(), 'health_check': be.health_check()}
    finally:
        be.close()
    print(json.dumps(out, indent=2))

if __name__ == '__main__':  # pragma: no cover
    cli_dump_config()
