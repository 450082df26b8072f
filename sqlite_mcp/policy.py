"""Statement category policy.

Classification is a deliberate textual heuristic, not a SQL parser:
  - trim, uppercase a copy, look at the leading keyword(s) only
  - SELECT            -> READ
  - CREATE TABLE      -> SCHEMA_DEFINITION
  - anything else     -> WRITE
Known limitations kept as-is: leading comments, CTEs (WITH ... SELECT) and
multi-statement payloads are not recognised; they classify by their first
characters like everything else.
"""
from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict

from .errors import CategoryMismatchError


class StatementCategory(str, Enum):
    READ = "read"
    WRITE = "write"
    SCHEMA_DEFINITION = "schema_definition"


def classify(raw_sql: str) -> StatementCategory:
    normalized = raw_sql.strip().upper()
    if normalized.startswith("SELECT"):
        return StatementCategory.READ
    if normalized.startswith("CREATE TABLE"):
        return StatementCategory.SCHEMA_DEFINITION
    return StatementCategory.WRITE


@dataclass(frozen=True)
class CategoryRule:
    allows: Callable[[StatementCategory], bool]
    rejection: str


RULES: Dict[str, CategoryRule] = {
    "read_query": CategoryRule(
        allows=lambda c: c is StatementCategory.READ,
        rejection="Only SELECT queries are allowed for read_query",
    ),
    "write_query": CategoryRule(
        allows=lambda c: c is not StatementCategory.READ,
        rejection="SELECT queries are not allowed for write_query",
    ),
    "create_table": CategoryRule(
        allows=lambda c: c is StatementCategory.SCHEMA_DEFINITION,
        rejection="Only CREATE TABLE statements are allowed",
    ),
}


class Policy:
    def __init__(self, rules: Dict[str, CategoryRule] | None = None):
        self.rules = RULES if rules is None else rules

    def check(self, operation_name: str, sql: str) -> StatementCategory:
        """Return the statement category or raise CategoryMismatchError.

        Operations without a rule (no SQL payload) always pass.
        """
        category = classify(sql)
        rule = self.rules.get(operation_name)
        if rule is not None and not rule.allows(category):
            raise CategoryMismatchError(operation_name, rule.rejection)
        return category
