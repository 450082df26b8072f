"""Executor abstraction layer.

Defines the minimal interface the dispatcher needs from a query executor so
another engine (or a recording fake in tests) can be plugged in without
touching dispatch logic.

KISS: Only the operations the catalog needs are abstracted.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Protocol, Any, Dict, List

Row = Dict[str, Any]


@dataclass(frozen=True)
class AffectedCount:
    affected_rows: int

    def to_dict(self) -> Dict[str, int]:
        return {"affected_rows": self.affected_rows}


class QueryExecutor(Protocol):  # pragma: no cover - structural typing helper
    def execute_read(self, sql: str) -> List[Row]:
        """Run a read statement and return rows in engine order.
        Implementations raise EngineError on any engine failure.
        """
        ...

    def execute_write(self, sql: str) -> AffectedCount: ...

    def list_tables(self) -> List[Row]: ...

    def describe_table(self, table_name: str) -> List[Row]: ...

    def close(self) -> None: ...
