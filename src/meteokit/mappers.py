# meteokit/mappers.py
"""Generic transformation of decoded JSON values into typed objects.

Two policies coexist here:

* list mapping (`process_array` and friends) is best effort: an element that
  fails to map is logged and dropped, the call still succeeds with the rest;
* flattened-list mapping is strict: any element with the wrong shape, or any
  element the mapper rejects, fails the whole call.

The `*_with_store` variants pass an `ObjectStore` through to the mapper so
that records can be upserted by identifier while they are mapped.
"""

from collections.abc import Callable, Iterator, Mapping
from typing import Any, Protocol, TypeVar

from .exceptions import InvalidFormatError
from .log_config import logger
from .store import ObjectStore

T = TypeVar("T")
T_co = TypeVar("T_co", covariant=True)

JSONObject = Mapping[str, Any]


class ResponseMapper(Protocol[T_co]):
    """A concrete mapper turning one JSON object into one item."""

    @classmethod
    def process(cls, json_object: Any) -> T_co: ...


class StoreResponseMapper(Protocol[T_co]):
    """A concrete mapper that creates or updates a record in an ObjectStore."""

    @classmethod
    def process(cls, json_object: Any, store: ObjectStore) -> T_co: ...


def _json_objects(obj: Any) -> list[JSONObject]:
    if not isinstance(obj, list) or not all(isinstance(item, Mapping) for item in obj):
        raise InvalidFormatError("Expected a JSON array of objects.")
    return obj


def _best_effort(items: list[JSONObject], map_one: Callable[[int, JSONObject], T]) -> Iterator[T]:
    for offset, json_item in enumerate(items):
        try:
            item = map_one(offset, json_item)
        except Exception as e:
            logger.warning(f"Mapping failed for element {offset}, dropping it. {e!r}")
            continue
        yield item


def _flattened(items: list[JSONObject], flatten_on: str | None) -> Iterator[Any]:
    for element in items:
        if flatten_on is not None:
            if flatten_on not in element:
                raise InvalidFormatError(f"Element has no '{flatten_on}' key to flatten on.")
            yield element[flatten_on]
        else:
            if len(element) != 1:
                raise InvalidFormatError("Element must contain exactly one key to flatten.")
            yield next(iter(element.values()))


def process_single(obj: Any, parsing: Callable[[JSONObject], T | None]) -> T:
    """Maps one JSON object with `parsing`.

    Raises:
        InvalidFormatError: If `obj` is not a JSON object or `parsing` returns None.
    """
    if not isinstance(obj, Mapping):
        raise InvalidFormatError("Expected a JSON object.")
    item = parsing(obj)
    if item is None:
        raise InvalidFormatError("The JSON object could not be parsed.")
    return item


def process_array(obj: Any, mapper: Callable[[JSONObject], T]) -> list[T]:
    """Maps every object of a JSON array, dropping those that fail.

    Args:
        obj: The decoded JSON value, which must be an array of objects.
        mapper: Called once per element.

    Returns:
        The successfully mapped items, in input order.

    Raises:
        InvalidFormatError: If `obj` is not an array of objects.
    """
    items = _json_objects(obj)
    return list(_best_effort(items, lambda _, json_item: mapper(json_item)))


def process_array_set(obj: Any, mapper: Callable[[JSONObject], T]) -> set[T]:
    """Same as `process_array`, collecting the items into a set."""
    items = _json_objects(obj)
    return set(_best_effort(items, lambda _, json_item: mapper(json_item)))


def process_flattened_array(
    obj: Any, mapper: Callable[[Any], T], flatten_on: str | None = None
) -> list[T]:
    """Maps an array whose elements wrap the objects of interest.

    Without `flatten_on`, each element must be a single-key object and its
    only value is mapped. With `flatten_on`, the value at that key is mapped.

    Raises:
        InvalidFormatError: If `obj` is not an array of objects or any element
            does not have the expected shape. Mapper errors propagate too.
    """
    items = _json_objects(obj)
    return [mapper(value) for value in _flattened(items, flatten_on)]


def process_with_store(
    obj: Any,
    store: ObjectStore,
    mapper: Callable[[JSONObject, int, ObjectStore], T],
) -> T:
    """Maps one JSON object into a store record."""
    if not isinstance(obj, Mapping):
        raise InvalidFormatError("Expected a JSON object.")
    return mapper(obj, 0, store)


def process_array_with_store(
    obj: Any,
    store: ObjectStore,
    mapper: Callable[[JSONObject, int, ObjectStore], T],
) -> list[T]:
    """Store-aware `process_array`. The mapper also receives the element offset."""
    items = _json_objects(obj)
    return list(_best_effort(items, lambda offset, json_item: mapper(json_item, offset, store)))


def process_array_set_with_store(
    obj: Any,
    store: ObjectStore,
    mapper: Callable[[JSONObject, int, ObjectStore], T],
) -> set[T]:
    """Store-aware `process_array_set`."""
    items = _json_objects(obj)
    return set(_best_effort(items, lambda offset, json_item: mapper(json_item, offset, store)))


def process_flattened_array_with_store(
    obj: Any,
    store: ObjectStore,
    mapper: Callable[[Any, ObjectStore], T],
    flatten_on: str | None = None,
) -> list[T]:
    """Store-aware `process_flattened_array`."""
    items = _json_objects(obj)
    return [mapper(value, store) for value in _flattened(items, flatten_on)]
