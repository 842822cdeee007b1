# meteokit/keys.py
"""Key-path lookups into untyped JSON objects.

Mappers describe the attributes they read as `ServiceKey`s, typically a
`str`-valued Enum whose values are dotted key paths:

```python
class CityKey(str, Enum):
    NAME = "name"
    LATITUDE = "location.latitude"

latitude = value_for(json, CityKey.LATITUDE, float)
```

Lookups never raise: a missing segment, a non-mapping intermediate value or a
value of the wrong type all produce None.
"""

from collections.abc import Mapping
from enum import Enum
from typing import Any, Protocol, TypeVar, overload, runtime_checkable

T = TypeVar("T")


@runtime_checkable
class ServiceKey(Protocol):
    """Anything that names a key path in a web service payload."""

    @property
    def key_name(self) -> str: ...


KeyLike = ServiceKey | Enum | str


def key_name(key: KeyLike) -> str:
    """Returns the dotted key path for a ServiceKey, an Enum member or a string."""
    if isinstance(key, str) and not isinstance(key, Enum):
        return key
    if isinstance(key, Enum):
        return str(key.value)
    return key.key_name


def _matches(value: Any, expected: type) -> bool:
    if expected is object:
        return True
    if isinstance(value, bool) and expected in (int, float):
        return False
    if expected is float and isinstance(value, int):
        return True
    return isinstance(value, expected)


def _lookup(json: Mapping[str, Any], path: str) -> Any:
    if not path:
        return None
    current: Any = json
    for segment in path.split("."):
        if not isinstance(current, Mapping) or segment not in current:
            return None
        current = current[segment]
    return current


@overload
def value_for(
    json: Mapping[str, Any], key: KeyLike, *, fallback: KeyLike | None = None
) -> Any: ...


@overload
def value_for(
    json: Mapping[str, Any],
    key: KeyLike,
    expected: type[T],
    *,
    fallback: KeyLike | None = None,
) -> T | None: ...


def value_for(json, key, expected=object, *, fallback=None):
    """Returns the value at a dotted key path, typed as `expected`.

    Args:
        json: The JSON object to read from.
        key: The key path, e.g. "location.latitude".
        expected: The type the value must have. An int is accepted (and
            converted) where a float is expected; a bool never counts as a number.
        fallback: An optional second key path tried when the first yields nothing.

    Returns:
        The value, or None if the path is empty, a segment is missing, an
        intermediate value is not a mapping or the value has the wrong type.
    """
    if not isinstance(json, Mapping):
        return None
    value = _lookup(json, key_name(key))
    if value is None or not _matches(value, expected):
        if fallback is not None:
            return value_for(json, fallback, expected)
        return None
    if expected is float:
        return float(value)
    return value
