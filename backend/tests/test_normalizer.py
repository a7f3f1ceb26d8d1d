import math

import pytest

from ingest_api.exceptions import FieldValidationError
from ingest_api.models import SENTINEL_VALUE, Partition
from ingest_api.services import FieldNormalizer, MandatoryFieldPolicy
from ingest_api.utils.validation import coerce_number


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (412, 412.0),
        (21.5, 21.5),
        ("412", 412.0),
        (" 7.25 ", 7.25),
        ("-3", -3.0),
        (".5", 0.5),
        ("+4e2", 400.0),
        (0, 0.0),
        (None, None),
        ("", None),
        ("   ", None),
    ],
)
def test_coerce_number_accepts(value, expected) -> None:
    assert coerce_number(value) == expected


@pytest.mark.parametrize("value", ["abc", "12abc", "1_000", "\u0661\u0662", "0x1A", "1e5e5", True, False, [1], {"v": 1}, "nan", "inf", math.inf, math.nan, 10**400])
def test_coerce_number_rejects(value) -> None:
    with pytest.raises(ValueError):
        coerce_number(value)


def test_outdoor_missing_optional_fields_get_sentinel() -> None:
    fields = FieldNormalizer().normalize({"co2": 500, "humidity": 40}, Partition.OUTDOOR)

    assert fields == {
        "temperature": SENTINEL_VALUE,
        "humidity": 40.0,
        "pressure": SENTINEL_VALUE,
        "light": SENTINEL_VALUE,
        "co2": 500.0,
    }


def test_outdoor_garbage_optional_field_gets_sentinel() -> None:
    fields = FieldNormalizer().normalize(
        {"co2": 500, "temperature": "warm", "pressure": None, "light": [1]},
        Partition.OUTDOOR,
    )

    assert fields["temperature"] == SENTINEL_VALUE
    assert fields["pressure"] == SENTINEL_VALUE
    assert fields["light"] == SENTINEL_VALUE


def test_indoor_only_keeps_co2() -> None:
    fields = FieldNormalizer().normalize({"co2": "612", "temperature": 20}, Partition.INDOOR)
    assert fields == {"co2": 612.0}


@pytest.mark.parametrize("policy", list(MandatoryFieldPolicy))
@pytest.mark.parametrize("co2", ["abc", "NaN", True, {"ppm": 400}])
def test_malformed_co2_is_rejected_under_every_policy(policy, co2) -> None:
    with pytest.raises(FieldValidationError) as exc_info:
        FieldNormalizer(policy=policy).normalize({"co2": co2}, Partition.INDOOR)

    assert exc_info.value.field == "co2"


@pytest.mark.parametrize("payload", [{}, {"co2": None}, {"co2": ""}])
def test_missing_co2_falls_back_to_sentinel(payload) -> None:
    fields = FieldNormalizer().normalize(payload, Partition.INDOOR)
    assert fields["co2"] == SENTINEL_VALUE


@pytest.mark.parametrize("payload", [{}, {"co2": None}, {"co2": ""}])
def test_missing_co2_is_rejected_when_strict(payload) -> None:
    normalizer = FieldNormalizer(policy=MandatoryFieldPolicy.STRICT)

    with pytest.raises(FieldValidationError) as exc_info:
        normalizer.normalize(payload, Partition.OUTDOOR)

    assert exc_info.value.field == "co2"
    assert exc_info.value.reason == "field is required"


def test_strict_policy_still_defaults_optional_fields() -> None:
    normalizer = FieldNormalizer(policy="strict")
    fields = normalizer.normalize({"co2": 450}, Partition.OUTDOOR)

    assert fields["co2"] == 450.0
    assert fields["light"] == SENTINEL_VALUE


def test_custom_sentinel() -> None:
    fields = FieldNormalizer(sentinel=-1).normalize({}, Partition.INDOOR)
    assert fields == {"co2": -1.0}
