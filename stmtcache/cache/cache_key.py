"""
Cache Key - Composite key for statement results
语句结果缓存键 - 由语句 id、分页、SQL 文本、参数值和环境 id 组成

Two invocations of the same statement with the same bounds, SQL text,
parameter values and environment collide on the same CacheKey; any
difference in any component, or in the order of components, yields a
different key.
"""

from typing import Any, Iterable, List

DEFAULT_MULTIPLIER = 37
DEFAULT_HASHCODE = 17

_HASH_MASK = (1 << 64) - 1
_MISSING = object()


def _value_hash(value: Any) -> int:
    """Hash a contributing value together with its type, folding containers structurally"""
    if value is None:
        return 1
    if isinstance(value, (list, tuple)):
        return hash((type(value).__qualname__, tuple(_value_hash(item) for item in value)))
    if isinstance(value, dict):
        return hash((type(value).__qualname__, frozenset(
            (_value_hash(k), _value_hash(v)) for k, v in value.items()
        )))
    if isinstance(value, (set, frozenset)):
        return hash((type(value).__qualname__, frozenset(_value_hash(item) for item in value)))
    try:
        return hash((type(value).__qualname__, hash(value)))
    except TypeError:
        return hash((type(value).__qualname__, repr(value)))


def _find_strict(item: Any, candidates: Iterable[Any]) -> Any:
    for candidate in candidates:
        if _values_equal(item, candidate):
            return candidate
    return _MISSING


def _values_equal(a: Any, b: Any) -> bool:
    """Type-strict equality: 1, 1.0 and True are different values"""
    if a is b:
        return True
    if type(a) is not type(b):
        return False
    if isinstance(a, (list, tuple)):
        return len(a) == len(b) and all(_values_equal(x, y) for x, y in zip(a, b))
    if isinstance(a, dict):
        if len(a) != len(b):
            return False
        for k, v in a.items():
            match = _find_strict(k, b)
            if match is _MISSING or not _values_equal(v, b[match]):
                return False
        return True
    if isinstance(a, (set, frozenset)):
        return len(a) == len(b) and all(_find_strict(item, b) is not _MISSING for item in a)
    return a == b


class CacheKey:
    """
    Streaming, order-sensitive composite key
    组合缓存键

    Every append() folds one value into the running hash:

        base = hash((type, value))   (1 for None)
        count += 1
        checksum += base
        base *= count
        hashcode = hashcode * multiplier + base

    Equality first compares hashcode, checksum and count, then the values
    pairwise in order, type-strict (1, 1.0 and True never collide).

    Usage:
        key = CacheKey()
        key.append("user.findById")
        key.extend([0, NO_ROW_LIMIT, "select * from users where id = ?", 1])
    """

    __slots__ = ("_multiplier", "_hashcode", "_checksum", "_count", "_update_list")

    def __init__(self, values: Iterable[Any] = ()):
        self._multiplier = DEFAULT_MULTIPLIER
        self._hashcode = DEFAULT_HASHCODE
        self._checksum = 0
        self._count = 0
        self._update_list: List[Any] = []
        self.extend(values)

    @property
    def count(self) -> int:
        return self._count

    def append(self, value: Any) -> None:
        """Fold one contributing value into the key"""
        base = _value_hash(value)

        self._count += 1
        self._checksum += base
        base *= self._count

        self._hashcode = (self._multiplier * self._hashcode + base) & _HASH_MASK
        self._update_list.append(value)

    def extend(self, values: Iterable[Any]) -> None:
        for value in values:
            self.append(value)

    def copy(self) -> "CacheKey":
        clone = CacheKey()
        clone._hashcode = self._hashcode
        clone._checksum = self._checksum
        clone._count = self._count
        clone._update_list = list(self._update_list)
        return clone

    def __eq__(self, other: object) -> bool:
        if self is other:
            return True
        if not isinstance(other, CacheKey):
            return NotImplemented
        if self._hashcode != other._hashcode:
            return False
        if self._checksum != other._checksum:
            return False
        if self._count != other._count:
            return False
        return all(_values_equal(a, b) for a, b in zip(self._update_list, other._update_list))

    def __hash__(self) -> int:
        return self._hashcode

    def __str__(self) -> str:
        parts = [str(self._hashcode), str(self._checksum)]
        parts.extend(str(value) for value in self._update_list)
        return ":".join(parts)

    def __repr__(self) -> str:
        return f"CacheKey({self})"
