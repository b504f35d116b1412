"""Static lookup of edge location coordinates."""

from __future__ import annotations

import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional


@dataclass(frozen=True, slots=True)
class Coordinate:
    lat: float
    lng: float


_STRIP_PATTERN = re.compile(r"[0-9-]")

EDGE_LOCATION_COORDINATES: Mapping[str, Coordinate] = MappingProxyType(
    {
        # Europe
        "AMS": Coordinate(52.3105, 4.7683),
        "ARN": Coordinate(59.6497, 17.9237),
        "ATH": Coordinate(37.9364, 23.9445),
        "CDG": Coordinate(49.0097, 2.5479),
        "CPH": Coordinate(55.618, 12.6508),
        "DUB": Coordinate(53.4264, -6.2499),
        "DUS": Coordinate(51.2789, 6.7645),
        "FRA": Coordinate(50.0379, 8.5622),
        "HAM": Coordinate(53.6304, 9.9882),
        "HEL": Coordinate(60.3172, 24.9633),
        "IST": Coordinate(41.2609, 28.7415),
        "LHR": Coordinate(51.47, -0.4543),
        "MAD": Coordinate(40.4983, -3.5676),
        "MRS": Coordinate(43.436, 5.2146),
        "MUC": Coordinate(48.3537, 11.786),
        "MXP": Coordinate(45.6286, 8.7236),
        "SOF": Coordinate(42.6967, 23.4114),
        "VIE": Coordinate(48.1103, 16.5697),
        "WAW": Coordinate(52.1672, 20.9679),
        "ZRH": Coordinate(47.4582, 8.5555),
        # Asia Pacific
        "BLR": Coordinate(13.1986, 77.7066),
        "HKG": Coordinate(22.308, 113.9185),
        "ICN": Coordinate(37.4602, 126.4407),
        "NRT": Coordinate(35.772, 140.3929),
        "SIN": Coordinate(1.3644, 103.9915),
        # Oceania
        "BNE": Coordinate(-27.3842, 153.1177),
        "MEL": Coordinate(-37.669, 144.841),
        # North America
        "ATL": Coordinate(33.6407, -84.4277),
        "CMH": Coordinate(39.9999, -82.8872),
        "DEN": Coordinate(39.8561, -104.6737),
        "DFW": Coordinate(32.8998, -97.0403),
        "IAD": Coordinate(38.9519, -77.448),
        "JFK": Coordinate(40.6413, -73.7781),
        "LAX": Coordinate(33.9416, -118.4085),
        "MIA": Coordinate(25.7959, -80.287),
        "ORD": Coordinate(41.9742, -87.9073),
        "PHX": Coordinate(33.4352, -112.0101),
        "SEA": Coordinate(47.4502, -122.3088),
        "SFO": Coordinate(37.6213, -122.379),
        "YTO": Coordinate(43.8561, -79.337),
        "YUL": Coordinate(45.4707, -73.7407),
        # South America
        "GRU": Coordinate(-23.4357, -46.4731),
        "QRO": Coordinate(20.6219, -100.185),
        "SCL": Coordinate(-33.3928, -70.7857),
    }
)


def base_location_code(edge_location: str) -> str:
    """Reduce an edge identifier such as ``ATH50-C1`` to its site code ``ATH``."""
    return _STRIP_PATTERN.sub("", edge_location)[:3].upper()


class CoordinateResolver:
    """Exact-match resolver over a read-only coordinate table."""

    def __init__(self, table: Optional[Mapping[str, Coordinate]] = None) -> None:
        self._table = EDGE_LOCATION_COORDINATES if table is None else MappingProxyType(dict(table))

    def resolve(self, base_code: str) -> Optional[Coordinate]:
        return self._table.get(base_code)

    def __contains__(self, base_code: object) -> bool:
        return base_code in self._table
