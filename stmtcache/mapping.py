"""
Statement definitions consumed by the executors.

Parsing mapping documents and generating SQL text happen elsewhere; the
executors only need the narrow model below: an identity, cache flags, a
statement kind, an optional shared cache and a way to bind a parameter
object to SQL text.
"""

import datetime
import decimal
import uuid
from collections.abc import Mapping, MutableMapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Optional, Tuple

from .cache.cache_interface import ICache

NO_ROW_OFFSET = 0
NO_ROW_LIMIT = 2147483647

# Parameter objects of these types are bound as-is instead of by property
SIMPLE_TYPES = (
    str, bytes, bytearray, int, float, bool, decimal.Decimal,
    datetime.date, datetime.time, datetime.datetime, datetime.timedelta,
    uuid.UUID, Enum,
)


class SqlCommandType(Enum):
    UNKNOWN = "unknown"
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"
    SELECT = "select"
    FLUSH = "flush"


class StatementType(Enum):
    STATEMENT = "statement"
    PREPARED = "prepared"
    CALLABLE = "callable"


class ParameterMode(Enum):
    IN = "in"
    OUT = "out"
    INOUT = "inout"


@dataclass(frozen=True)
class ParameterMapping:
    """One placeholder of the SQL text, in declaration order"""
    property: str
    mode: ParameterMode = ParameterMode.IN


@dataclass(frozen=True)
class RowBounds:
    """Pagination window applied to a query result"""
    offset: int = NO_ROW_OFFSET
    limit: int = NO_ROW_LIMIT


RowBounds.DEFAULT = RowBounds()


@dataclass
class BoundSql:
    """
    SQL text bound to one parameter object.

    additional_parameters hold values produced while building the text
    (loop variables of dynamic SQL and the like); they win over properties
    of the parameter object.
    """
    sql: str
    parameter_mappings: Tuple[ParameterMapping, ...] = ()
    parameter_object: Any = None
    additional_parameters: Dict[str, Any] = field(default_factory=dict)

    def has_additional_parameter(self, name: str) -> bool:
        return name.split(".", 1)[0] in self.additional_parameters

    def get_additional_parameter(self, name: str) -> Any:
        head, _, rest = name.partition(".")
        value = self.additional_parameters.get(head)
        return get_property(value, rest) if rest else value


@dataclass(eq=False)
class MappedStatement:
    """
    A statement definition.

    Attributes:
        id: Fully qualified statement id, e.g. "user.findById"
        sql: Static SQL text (ignored when sql_source is set)
        parameter_mappings: Placeholders of the static SQL text
        command_type: SELECT, INSERT, ...
        statement_type: STATEMENT, PREPARED or CALLABLE
        cache: Shared cache of the statement's namespace, if any
        flush_cache_required: Clear caches before running (default: not a select)
        use_cache: Consult the shared cache (default: a select)
        sql_source: Builds BoundSql from the parameter object for dynamic SQL
        resource: Where the statement was defined, for diagnostics
    """
    id: str
    sql: str = ""
    parameter_mappings: Tuple[ParameterMapping, ...] = ()
    command_type: SqlCommandType = SqlCommandType.SELECT
    statement_type: StatementType = StatementType.PREPARED
    cache: Optional[ICache] = None
    flush_cache_required: Optional[bool] = None
    use_cache: Optional[bool] = None
    sql_source: Optional[Callable[[Any], BoundSql]] = None
    resource: str = ""

    def __post_init__(self):
        is_select = self.command_type is SqlCommandType.SELECT
        if self.flush_cache_required is None:
            self.flush_cache_required = not is_select
        if self.use_cache is None:
            self.use_cache = is_select
        self.parameter_mappings = tuple(self.parameter_mappings)

    def get_bound_sql(self, parameter: Any) -> BoundSql:
        if self.sql_source is not None:
            return self.sql_source(parameter)
        return BoundSql(
            sql=self.sql,
            parameter_mappings=self.parameter_mappings,
            parameter_object=parameter,
        )


def is_simple_value(value: Any) -> bool:
    return isinstance(value, SIMPLE_TYPES)


def get_property(obj: Any, name: str) -> Any:
    """Read a (dotted) property from mappings and plain objects; missing -> None"""
    if not name:
        return obj
    for part in name.split("."):
        if obj is None:
            return None
        if isinstance(obj, Mapping):
            obj = obj.get(part)
        else:
            obj = getattr(obj, part, None)
    return obj


def resolve_parameter_value(bound_sql: BoundSql, parameter: Any, name: str) -> Any:
    """
    Value bound to the placeholder ``name``.

    Additional parameters win; a None parameter binds None; a simple
    parameter binds itself; anything else is read by property name.
    """
    if bound_sql.has_additional_parameter(name):
        return bound_sql.get_additional_parameter(name)
    if parameter is None:
        return None
    if is_simple_value(parameter):
        return parameter
    return get_property(parameter, name)


def set_property(obj: Any, name: str, value: Any) -> None:
    """Write a (dotted) property on mappings and plain objects"""
    head, _, last = name.rpartition(".")
    target = get_property(obj, head) if head else obj
    if target is None:
        raise AttributeError(f"Cannot set {name!r}: {head!r} is None")
    if isinstance(target, MutableMapping):
        target[last] = value
    else:
        setattr(target, last, value)
