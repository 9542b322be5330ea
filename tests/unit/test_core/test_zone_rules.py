import pytest

from core.models import ZoneType
from core.zone_rules import AREA, LOCAL, resolve_zone, scan_features


def _el(**tags):
    return {"type": "way", "id": 1, "tags": tags}


def _zone(elements, variant=AREA):
    zone, _, _ = resolve_zone(scan_features(elements), variant)
    return zone


def test_scan_sets_one_flag_per_category():
    flags = scan_features([
        _el(highway="primary"),
        _el(natural="coastline"),
        _el(building="yes"),
        {"type": "node", "id": 2},  # untagged
    ])
    assert flags.road
    assert not flags.main_road
    assert flags.road_class == "primary"
    assert flags.coast
    assert flags.urban
    assert not flags.military


def test_strongest_road_class_wins():
    flags = scan_features([_el(highway="secondary"), _el(highway="trunk"), _el(highway="primary")])
    assert flags.road_class == "trunk"
    assert flags.main_road


def test_minor_road_marks_presence_only():
    flags = scan_features([_el(highway="footway")])
    assert flags.road
    assert flags.road_class is None
    assert _zone([_el(highway="footway")]) == ZoneType.INTERURBAN


@pytest.mark.parametrize("elements,expected", [
    ([_el(landuse="military"), _el(amenity="hospital")], ZoneType.MILITARY),
    ([_el(military="bunker"), _el(amenity="prison")], ZoneType.MILITARY),
    ([_el(amenity="prison"), _el(building="government")], ZoneType.PRISON),
    ([_el(building="government"), _el(amenity="hospital")], ZoneType.GOVERNMENT),
    ([_el(amenity="hospital"), _el(highway="motorway")], ZoneType.HOSPITAL),
    ([_el(highway="motorway"), _el(natural="cliff")], ZoneType.MAIN_ROAD),
    ([_el(natural="cliff"), _el(natural="coastline")], ZoneType.CLIFF),
    ([_el(natural="beach"), _el(building="yes")], ZoneType.COAST),
    ([_el(building="yes"), _el(natural="water")], ZoneType.URBAN),
    ([_el(place="town")], ZoneType.URBAN),
    ([_el(natural="sea"), _el(leisure="park")], ZoneType.SEA),
    ([_el(leisure="park")], ZoneType.NATURE_RESERVE),
    ([_el(boundary="protected_area")], ZoneType.NATURE_RESERVE),
    ([], ZoneType.INTERURBAN),
])
def test_area_priority_order(elements, expected):
    """First matching rule in the priority table decides."""
    assert _zone(elements, AREA) == expected


def test_local_variant_skips_cliff_and_coast():
    assert _zone([_el(natural="cliff")], LOCAL) == ZoneType.SEA
    assert _zone([_el(natural="coastline"), _el(building="yes")], LOCAL) == ZoneType.URBAN


def test_default_zone_differs_per_variant():
    assert _zone([], AREA) == ZoneType.INTERURBAN
    assert _zone([], LOCAL) == ZoneType.SEA


def test_evidence_prefix():
    _, note, rule = resolve_zone(scan_features([_el(highway="trunk")]), LOCAL)
    assert note.startswith("Local: ")
    assert rule.name == "main_road"

    _, note, rule = resolve_zone(scan_features([]), AREA)
    assert note == "OSM: no matching tags found, defaulting to INTERURBAN"
    assert rule is None


def test_coast_rule_marks_coast():
    _, _, rule = resolve_zone(scan_features([_el(natural="coastline")]), AREA)
    assert rule.marks_coast
