"""
Deferred loads - property assignments waiting on a local cache entry.

A nested lookup whose key is still IN_FLIGHT (the outer query is producing
it right now) cannot be answered yet. Instead of querying again, the
result materializer registers a DeferredLoad; the executor runs it once the
outermost query has finished and the key is RESOLVED.
"""

from typing import Any, Hashable, List, Optional

from ..exceptions import TooManyResultsError
from ..mapping import set_property
from .local_cache import LocalCache


def extract_object_from_list(rows: Optional[List[Any]], target_type: Optional[type]) -> Any:
    """
    Shape a cached row list for a property of type target_type.

    list            -> the cached list itself
    tuple, set, ... -> a new collection of that type
    anything else   -> the single row, None for no rows

    Raises:
        TooManyResultsError: a single value was expected but several rows came back
    """
    if target_type is not None and isinstance(target_type, type):
        if target_type is list:
            return rows
        if issubclass(target_type, (list, tuple, set, frozenset)):
            return target_type(rows or ())

    if rows is None or len(rows) == 0:
        return None
    if len(rows) > 1:
        raise TooManyResultsError(
            "Statement returned more than one row, where no more than one was expected."
        )
    return rows[0]


class DeferredLoad:
    """(result object, property, key, target type) waiting on a local cache key"""

    def __init__(
        self,
        result_object: Any,
        property_name: str,
        key: Hashable,
        local_cache: LocalCache,
        target_type: Optional[type] = None,
    ):
        self.result_object = result_object
        self.property_name = property_name
        self.key = key
        self.target_type = target_type
        self._local_cache = local_cache

    def can_load(self) -> bool:
        return self._local_cache.is_resolved(self.key)

    def load(self) -> None:
        rows = self._local_cache.get(self.key)
        value = extract_object_from_list(rows, self.target_type)
        set_property(self.result_object, self.property_name, value)

    def __repr__(self) -> str:
        return f"DeferredLoad(property={self.property_name!r}, key={self.key!r})"
