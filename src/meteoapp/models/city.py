"""City records kept in the object store."""

from typing import ClassVar

from pydantic import Field

from meteokit.store import StoredModel


class City(StoredModel):
    """A city whose weather can be looked up.

    Attributes:
        object_id: Identifier of the city in the cities payload.
        name: Display name, also used to query the weather API.
        country_code: ISO 3166 country code, e.g. "FR".
        latitude: Latitude in degrees; 0 when unknown.
        longitude: Longitude in degrees; 0 when unknown.
    """

    identifier_key_path: ClassVar[str] = "object_id"

    object_id: int
    name: str | None = None
    country_code: str | None = None
    latitude: float = Field(default=0.0)
    longitude: float = Field(default=0.0)

    @property
    def location(self) -> tuple[float, float] | None:
        """(latitude, longitude), or None while either coordinate is unset."""
        if self.latitude == 0 or self.longitude == 0:
            return None
        return (self.latitude, self.longitude)

    @property
    def query(self) -> str | None:
        """The `q` parameter for the weather API, e.g. "Nantes,FR"."""
        if self.name is None:
            return None
        if self.country_code:
            return f"{self.name},{self.country_code}"
        return self.name
