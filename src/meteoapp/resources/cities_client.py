"""Access to the city records of the object store."""

import json
from importlib import resources
from pathlib import Path

from meteokit.exceptions import InvalidFormatError
from meteokit.log_config import logger
from meteokit.mappers import process_array_with_store
from meteokit.store import ObjectStore

from ..mappers import CityResponseMapper
from ..models import City

PREDEFINED_CITIES_RESOURCE = "predefined_cities.json"


class CitiesClient:
    """Loads and lists the cities kept in an ObjectStore.

    Attributes:
        _store: The store holding City records.
    """

    def __init__(self, store: ObjectStore):
        self._store = store
        logger.debug(f"{self.__class__.__name__} initialized")

    def all(self) -> list[City]:
        """All cities, sorted by name."""
        return self._store.all_objects(City, sort_on="name")

    def get(self, object_id: int) -> City | None:
        return self._store.object(City, object_id)

    def load(self, payload: object) -> list[City]:
        """Maps a JSON array of cities into the store and saves it.

        Malformed entries are logged and skipped. Nothing is saved when the
        payload itself is not an array of objects.

        Raises:
            InvalidFormatError: If `payload` is not a JSON array of objects.
        """
        try:
            cities = process_array_with_store(payload, self._store, CityResponseMapper.process_item)
        except InvalidFormatError:
            self._store.rollback()
            raise
        self._store.save()
        logger.info(f"Loaded {len(cities)} cities into the store")
        return cities

    def load_predefined(self, path: Path | str | None = None) -> list[City]:
        """Loads the bundled list of cities, or the JSON file at `path`.

        Raises:
            FileNotFoundError: If `path` does not exist.
            InvalidFormatError: If the file does not hold a JSON array of objects.
        """
        if path is not None:
            text = Path(path).read_text(encoding="utf-8")
        else:
            text = (
                resources.files("meteoapp")
                .joinpath("data").joinpath(PREDEFINED_CITIES_RESOURCE)
                .read_text(encoding="utf-8")
            )
        try:
            payload = json.loads(text)
        except ValueError as e:
            raise InvalidFormatError(f"Cities file is not valid JSON: {e}") from e
        return self.load(payload)


def load_predefined_cities(store: ObjectStore, path: Path | str | None = None) -> list[City]:
    """Loads the predefined cities into `store` and saves it."""
    return CitiesClient(store).load_predefined(path)
