"""Operation catalog and argument validation.

The catalog is declared as data (FieldSpec / OperationDescriptor) so that the
advertised input schemas and the runtime validator come from one place.
Validation never raises: it returns a ValidationResult holding either the
typed argument record or a list of field errors.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple, Type


class OperationCategory(str, Enum):
    READ_QUERY = "read_query"
    WRITE_QUERY = "write_query"
    SCHEMA_DEFINITION = "schema_definition"
    LIST_TABLES = "list_tables"
    DESCRIBE_TABLE = "describe_table"
    APPEND_INSIGHT = "append_insight"


# JSON-schema type name -> accepted Python types
_TYPE_TABLE: Dict[str, Tuple[type, ...]] = {
    "string": (str,),
    "integer": (int,),
    "number": (int, float),
    "boolean": (bool,),
}

_JSON_TYPE_NAMES = {
    type(None): "null", bool: "boolean", int: "integer", float: "number",
    str: "string", list: "array", dict: "object",
}


@dataclass(frozen=True)
class FieldSpec:
    name: str
    type: str
    description: str
    required: bool = True

    def json_schema(self) -> Dict[str, Any]:
        return {"type": self.type, "description": self.description}

    def accepts(self, value: Any) -> bool:
        if self.type in ("integer", "number") and isinstance(value, bool):
            return False
        return isinstance(value, _TYPE_TABLE[self.type])


# --- Typed argument records ---------------------------------------------------

@dataclass(frozen=True)
class ReadQueryArgs:
    query: str

@dataclass(frozen=True)
class WriteQueryArgs:
    query: str

@dataclass(frozen=True)
class CreateTableArgs:
    query: str

@dataclass(frozen=True)
class ListTablesArgs:
    pass

@dataclass(frozen=True)
class DescribeTableArgs:
    table_name: str

@dataclass(frozen=True)
class AppendInsightArgs:
    insight: str


@dataclass(frozen=True)
class OperationDescriptor:
    name: str
    description: str
    category: OperationCategory
    args_type: Type[Any]
    fields: Tuple[FieldSpec, ...] = ()

    def input_schema(self) -> Dict[str, Any]:
        """JSON-schema object advertised to MCP clients."""
        schema: Dict[str, Any] = {
            "type": "object",
            "properties": {f.name: f.json_schema() for f in self.fields},
        }
        required = [f.name for f in self.fields if f.required]
        if required:
            schema["required"] = required
        return schema


CATALOG: Dict[str, OperationDescriptor] = {d.name: d for d in (
    OperationDescriptor(
        name="read_query",
        description="Execute a SELECT query on the SQLite database",
        category=OperationCategory.READ_QUERY,
        args_type=ReadQueryArgs,
        fields=(FieldSpec("query", "string", "SELECT SQL query to execute"),),
    ),
    OperationDescriptor(
        name="write_query",
        description="Execute an INSERT, UPDATE, or DELETE query on the SQLite database",
        category=OperationCategory.WRITE_QUERY,
        args_type=WriteQueryArgs,
        fields=(FieldSpec("query", "string", "INSERT, UPDATE, or DELETE SQL query to execute"),),
    ),
    OperationDescriptor(
        name="create_table",
        description="Create a new table in the SQLite database",
        category=OperationCategory.SCHEMA_DEFINITION,
        args_type=CreateTableArgs,
        fields=(FieldSpec("query", "string", "CREATE TABLE SQL statement"),),
    ),
    OperationDescriptor(
        name="list_tables",
        description="List all tables in the SQLite database",
        category=OperationCategory.LIST_TABLES,
        args_type=ListTablesArgs,
    ),
    OperationDescriptor(
        name="describe_table",
        description="Get the schema information for a specific table",
        category=OperationCategory.DESCRIBE_TABLE,
        args_type=DescribeTableArgs,
        fields=(FieldSpec("table_name", "string", "Name of the table to describe"),),
    ),
    OperationDescriptor(
        name="append_insight",
        description="Add a business insight to the memo",
        category=OperationCategory.APPEND_INSIGHT,
        args_type=AppendInsightArgs,
        fields=(FieldSpec("insight", "string", "Business insight discovered from data analysis"),),
    ),
)}


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str

    def __str__(self) -> str:
        return f"{self.field}: {self.message}" if self.field else self.message


@dataclass
class ValidationResult:
    operation: str
    arguments: Optional[Any] = None
    errors: List[FieldError] = field(default_factory=list)
    unknown: bool = False

    @property
    def ok(self) -> bool:
        return not self.errors and not self.unknown

    @property
    def message(self) -> str:
        if self.unknown:
            return f"Unknown operation: {self.operation}"
        details = "; ".join(str(e) for e in self.errors)
        return f"Invalid arguments for {self.operation}: {details}"


def _json_type_name(value: Any) -> str:
    return _JSON_TYPE_NAMES.get(type(value), type(value).__name__)


def validate(operation_name: str, argument_bag: Optional[Mapping[str, Any]]) -> ValidationResult:
    """Check argument_bag against the declared shape of operation_name."""
    descriptor = CATALOG.get(operation_name)
    if descriptor is None:
        return ValidationResult(operation=str(operation_name), unknown=True)
    if argument_bag is None:
        argument_bag = {}
    if not isinstance(argument_bag, Mapping):
        return ValidationResult(
            operation=operation_name,
            errors=[FieldError("", f"Expected object, received {_json_type_name(argument_bag)}")],
        )

    errors: List[FieldError] = []
    values: Dict[str, Any] = {}
    for spec in descriptor.fields:
        if spec.name not in argument_bag:
            if spec.required:
                errors.append(FieldError(spec.name, "Required"))
            continue
        value = argument_bag[spec.name]
        if not spec.accepts(value):
            errors.append(FieldError(spec.name, f"Expected {spec.type}, received {_json_type_name(value)}"))
            continue
        values[spec.name] = value
    if errors:
        return ValidationResult(operation=operation_name, errors=errors)
    # Unknown extra keys are dropped, not rejected.
    return ValidationResult(operation=operation_name, arguments=descriptor.args_type(**values))
