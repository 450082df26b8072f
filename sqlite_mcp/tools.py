"""
Operation dispatcher for the SQLite MCP server.
Routes a named call through validation, the statement policy and the executor
(or the insight ledger) and always answers with an Envelope.
"""
from __future__ import annotations

import base64
import json
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional

from .base_backend import QueryExecutor, Row
from .errors import CategoryMismatchError, EngineError, ValidationError
from .insights import InsightLedger
from .logging_util import debug, error, info, warn
from .policy import Policy
from .schemas import CATALOG, OperationDescriptor, validate

TABLE_CREATED_MESSAGE = "Table created successfully"
INSIGHT_ADDED_MESSAGE = "Insight added to memo"


@dataclass(frozen=True)
class Envelope:
    """Uniform response for every operation call."""
    text: str
    is_error: bool = False

    @classmethod
    def failure(cls, message: str) -> "Envelope":
        return cls(text=f"Error: {message}", is_error=True)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"content": [{"type": "text", "text": self.text}]}
        if self.is_error:
            out["isError"] = True
        return out


def _json_default(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray, memoryview)):
        return base64.b64encode(bytes(value)).decode("ascii")
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def render_rows(rows: List[Row]) -> str:
    return json.dumps(rows, indent=2, default=_json_default)


class SQLiteTools:
    """Operation dispatcher.

    Per call: validate -> category check -> execute -> envelope. Stateless
    across calls apart from the ledger; never lets an exception escape
    dispatch().
    """

    def __init__(self, db_path: Optional[str] = None, backend: Optional[QueryExecutor] = None,
                 ledger: Optional[InsightLedger] = None, policy: Optional[Policy] = None):
        if backend is None:
            if db_path is None:
                raise ValueError("db_path or backend is required")
            from .sqlite_backend import SQLiteBackend
            backend = SQLiteBackend(db_path)
        self.db_path = db_path
        self.backend = backend
        self.ledger = ledger if ledger is not None else InsightLedger()
        self.policy = policy or Policy()
        self._handlers: Dict[str, Callable[[Any], Envelope]] = {
            "read_query": self.read_query,
            "write_query": self.write_query,
            "create_table": self.create_table,
            "list_tables": self.list_tables,
            "describe_table": self.describe_table,
            "append_insight": self.append_insight,
        }

    def catalog(self) -> List[OperationDescriptor]:
        return list(CATALOG.values())

    def dispatch(self, name: str, arguments: Optional[Mapping[str, Any]] = None) -> Envelope:
        start = time.time()
        try:
            result = validate(name, arguments)
            if not result.ok:
                raise ValidationError(result.operation, result.message)
            envelope = self._handlers[name](result.arguments)
        except (ValidationError, CategoryMismatchError) as e:
            warn("tool_rejected", tool=name, kind=type(e).__name__, error=str(e))
            return Envelope.failure(str(e))
        except EngineError as e:
            warn("tool_failed", tool=name, error=str(e))
            return Envelope.failure(str(e))
        except Exception as e:  # last line: no fault crosses the dispatcher
            error("tool_failed", tool=name, kind=type(e).__name__, error=str(e))
            return Envelope.failure(str(e))
        debug("tool_call", tool=name, ms=int((time.time() - start) * 1000))
        return envelope

    # --- Operation handlers (arguments already validated) ---------------------------
    def read_query(self, args) -> Envelope:
        self.policy.check("read_query", args.query)
        return Envelope(render_rows(self.backend.execute_read(args.query)))

    def write_query(self, args) -> Envelope:
        self.policy.check("write_query", args.query)
        affected = self.backend.execute_write(args.query)
        return Envelope(json.dumps(affected.to_dict(), indent=2))

    def create_table(self, args) -> Envelope:
        self.policy.check("create_table", args.query)
        self.backend.execute_write(args.query)
        return Envelope(TABLE_CREATED_MESSAGE)

    def list_tables(self, args) -> Envelope:
        return Envelope(render_rows(self.backend.list_tables()))

    def describe_table(self, args) -> Envelope:
        return Envelope(render_rows(self.backend.describe_table(args.table_name)))

    def append_insight(self, args) -> Envelope:
        self.ledger.append(args.insight)
        info("insight_appended", count=len(self.ledger))
        return Envelope(INSIGHT_ADDED_MESSAGE)

    def synthesize_memo(self) -> str:
        return self.ledger.synthesize()

    def close(self) -> None:
        self.backend.close()
