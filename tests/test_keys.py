from enum import Enum

from meteokit.keys import key_name, value_for


class SampleKey(str, Enum):
    NAME = "name"
    LATITUDE = "location.latitude"


class CustomKey:
    @property
    def key_name(self) -> str:
        return "location.longitude"


PAYLOAD = {
    "name": "Paris",
    "count": 3,
    "flag": True,
    "location": {"latitude": 48.8, "longitude": 2},
}


def test_key_name_accepts_strings_enums_and_service_keys():
    assert key_name("a.b") == "a.b"
    assert key_name(SampleKey.LATITUDE) == "location.latitude"
    assert key_name(CustomKey()) == "location.longitude"


def test_nested_lookup():
    assert value_for(PAYLOAD, SampleKey.LATITUDE, float) == 48.8
    assert value_for(PAYLOAD, "location.latitude") == 48.8


def test_lookup_through_non_mapping_is_absent():
    assert value_for({"location": 5}, SampleKey.LATITUDE, float) is None


def test_missing_and_empty_paths_are_absent():
    assert value_for(PAYLOAD, "location.altitude") is None
    assert value_for(PAYLOAD, "") is None
    assert value_for({}, SampleKey.NAME) is None


def test_type_mismatch_is_absent():
    assert value_for(PAYLOAD, SampleKey.NAME, int) is None
    assert value_for(PAYLOAD, "location", str) is None


def test_int_is_accepted_as_float():
    longitude = value_for(PAYLOAD, CustomKey(), float)
    assert longitude == 2.0
    assert isinstance(longitude, float)


def test_bool_is_not_a_number():
    assert value_for(PAYLOAD, "flag", int) is None
    assert value_for(PAYLOAD, "flag", float) is None
    assert value_for(PAYLOAD, "flag", bool) is True


def test_fallback_key_is_used_when_primary_is_absent():
    assert value_for(PAYLOAD, "title", str, fallback=SampleKey.NAME) == "Paris"
    assert value_for(PAYLOAD, "count", str, fallback="name") == "Paris"
    assert value_for(PAYLOAD, "title", str, fallback="subtitle") is None


def test_non_mapping_input_is_absent():
    assert value_for(["name"], "name") is None  # type: ignore[arg-type]
    assert value_for(None, "name") is None  # type: ignore[arg-type]
