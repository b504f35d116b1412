from __future__ import annotations

import pytest

from services.geo import (
    EDGE_LOCATION_COORDINATES,
    Coordinate,
    CoordinateResolver,
    base_location_code,
)


@pytest.mark.parametrize(
    ("edge_location", "expected"),
    [
        ("ATH50-C1", "ATH"),
        ("fra56-p2", "FRA"),
        ("ZZZ99", "ZZZ"),
        ("IAD89-C3", "IAD"),
        ("1-2-3", ""),
    ],
)
def test_base_location_code(edge_location: str, expected: str) -> None:
    assert base_location_code(edge_location) == expected


def test_resolve_known_code() -> None:
    resolver = CoordinateResolver()

    assert resolver.resolve("ATH") == Coordinate(lat=37.9364, lng=23.9445)
    assert "LHR" in resolver


def test_resolve_unknown_code_returns_none() -> None:
    resolver = CoordinateResolver()

    assert resolver.resolve("ZZZ") is None
    assert resolver.resolve("ath") is None


def test_default_table_is_read_only() -> None:
    assert len(EDGE_LOCATION_COORDINATES) == 44
    assert all(code in CoordinateResolver() for code in EDGE_LOCATION_COORDINATES)
    with pytest.raises(TypeError):
        EDGE_LOCATION_COORDINATES["ZZZ"] = Coordinate(0.0, 0.0)  # type: ignore[index]


def test_custom_table_is_copied() -> None:
    table = {"XYZ": Coordinate(1.0, 2.0)}
    resolver = CoordinateResolver(table)
    table["ABC"] = Coordinate(3.0, 4.0)

    assert resolver.resolve("XYZ") == Coordinate(1.0, 2.0)
    assert resolver.resolve("ABC") is None


def test_empty_table_resolves_nothing() -> None:
    resolver = CoordinateResolver(table={})

    assert resolver
    assert resolver.resolve("ATH") is None
