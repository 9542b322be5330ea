"""
Tag scanning and zone priority resolution.

The priority order lives in one place, ZONE_RULES, and is shared by the
area (bounding box) and local (centroid circle) classifiers. Rules flagged
`area_only` are skipped by the local variant.
"""

from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from core.models import ZoneType

# Strongest road class wins; unlisted highway values only mark road presence
ROAD_CLASS_PRIORITY = {
    "motorway": 4,
    "trunk": 3,
    "primary": 2,
    "secondary": 1,
}
MAIN_ROAD_CLASSES = {"motorway", "trunk"}
URBAN_LANDUSE = {"residential", "commercial", "industrial"}
SETTLEMENT_PLACES = {"city", "town", "village"}


@dataclass
class FeatureFlags:
    """Boolean summary of every tag category seen in one query result."""
    military: bool = False
    prison: bool = False
    government: bool = False
    hospital: bool = False
    road: bool = False
    main_road: bool = False
    road_class: Optional[str] = None
    sea: bool = False
    coast: bool = False
    cliff: bool = False
    nature: bool = False
    urban: bool = False


def scan_features(elements: Iterable[Dict]) -> FeatureFlags:
    """Single pass over Overpass elements, setting one flag per tag category."""
    flags = FeatureFlags()

    for el in elements:
        tags = el.get("tags") or {}

        if tags.get("landuse") == "military" or tags.get("military"):
            flags.military = True
        if tags.get("amenity") == "prison":
            flags.prison = True
        if tags.get("building") == "government":
            flags.government = True
        if tags.get("amenity") == "hospital":
            flags.hospital = True

        highway = tags.get("highway")
        if highway:
            flags.road = True
            current = ROAD_CLASS_PRIORITY.get(flags.road_class, 0) if flags.road_class else 0
            if ROAD_CLASS_PRIORITY.get(highway, 0) > current:
                flags.road_class = highway
            if highway in MAIN_ROAD_CLASSES:
                flags.main_road = True

        natural = tags.get("natural")
        if natural in ("sea", "water") or tags.get("place") == "sea" or tags.get("water"):
            flags.sea = True
        if natural in ("coastline", "beach") or tags.get("leisure") == "beach":
            flags.coast = True
        if natural == "cliff":
            flags.cliff = True
        if (
            tags.get("leisure") in ("park", "nature_reserve")
            or tags.get("boundary") == "protected_area"
            or tags.get("landuse") == "forest"
            or natural == "wood"
        ):
            flags.nature = True

        if (
            tags.get("building")
            or tags.get("landuse") in URBAN_LANDUSE
            or tags.get("place") in SETTLEMENT_PLACES
        ):
            flags.urban = True

    return flags


@dataclass(frozen=True)
class ZoneRule:
    """One row of the priority table: first matching row decides the zone."""
    name: str
    matches: Callable[[FeatureFlags], bool]
    zone: ZoneType
    evidence: str
    area_only: bool = False
    marks_coast: bool = False


ZONE_RULES: List[ZoneRule] = [
    ZoneRule("military", lambda f: f.military, ZoneType.MILITARY, "military tag detected"),
    ZoneRule("prison", lambda f: f.prison, ZoneType.PRISON, "prison tag detected"),
    ZoneRule("government", lambda f: f.government, ZoneType.GOVERNMENT, "government building detected"),
    ZoneRule("hospital", lambda f: f.hospital, ZoneType.HOSPITAL, "hospital tag detected"),
    ZoneRule("main_road", lambda f: f.main_road, ZoneType.MAIN_ROAD, "main road detected (motorway/trunk)"),
    ZoneRule("cliff", lambda f: f.cliff, ZoneType.CLIFF, "cliff tag detected", area_only=True),
    ZoneRule(
        "coast", lambda f: f.coast, ZoneType.COAST, "coastline/beach tag detected",
        area_only=True, marks_coast=True,
    ),
    ZoneRule("urban", lambda f: f.urban, ZoneType.URBAN, "urban fabric tag detected"),
    ZoneRule("sea", lambda f: f.sea, ZoneType.SEA, "water/sea tag detected"),
    ZoneRule("nature", lambda f: f.nature, ZoneType.NATURE_RESERVE, "park / forest / reserve detected"),
]


@dataclass(frozen=True)
class Variant:
    """A classifier flavour: evidence prefix, default zone and rule subset."""
    name: str
    prefix: str
    default_zone: ZoneType
    include_area_only: bool


AREA = Variant("area", "OSM", ZoneType.INTERURBAN, include_area_only=True)
LOCAL = Variant("local", "Local", ZoneType.SEA, include_area_only=False)


def resolve_zone(flags: FeatureFlags, variant: Variant) -> Tuple[ZoneType, str, Optional[ZoneRule]]:
    """
    Walk ZONE_RULES top-down and return the first match.

    Returns:
        (zone, evidence line, matching rule or None when the default applied)
    """
    for rule in ZONE_RULES:
        if rule.area_only and not variant.include_area_only:
            continue
        if rule.matches(flags):
            return rule.zone, f"{variant.prefix}: {rule.evidence}", rule
    note = (
        f"{variant.prefix}: no matching tags found, "
        f"defaulting to {variant.default_zone.value}"
    )
    return variant.default_zone, note, None
