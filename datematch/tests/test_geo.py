from __future__ import annotations

import re

import numpy as np

from datematch.venues.geo import (
    distance_km,
    distances_km,
    extract_neighborhood,
    format_distance,
    name_similarity,
    normalize_name,
)

HAMBURG = (53.5511, 9.9937)
BERLIN = (52.5200, 13.4050)


def test_identical_points_format_as_zero_metres():
    assert format_distance(distance_km(*HAMBURG, *HAMBURG)) == "0m"


def test_hamburg_to_berlin_formats_in_kilometres():
    formatted = format_distance(distance_km(*HAMBURG, *BERLIN))
    match = re.fullmatch(r"(\d+\.\d)km", formatted)
    assert match is not None
    assert 250 <= float(match.group(1)) <= 270


def test_short_distance_formats_in_metres():
    assert format_distance(0.4567) == "457m"
    assert format_distance(1.0) == "1.0km"


def test_distance_just_under_a_kilometre_rounds_up_to_kilometres():
    assert format_distance(0.9996) == "1.0km"
    assert format_distance(0.9994) == "999m"


def test_vectorised_distances_match_great_circle():
    lats = np.array([HAMBURG[0], BERLIN[0]])
    lons = np.array([HAMBURG[1], BERLIN[1]])
    result = distances_km(*HAMBURG, lats, lons)
    assert result[0] == 0.0
    assert abs(result[1] - distance_km(*HAMBURG, *BERLIN)) < 0.5


def test_normalize_name_strips_punctuation_and_case():
    assert normalize_name("  Café   Luna's! ") == "café luna s"
    assert normalize_name(None) == ""


def test_name_similarity():
    assert name_similarity("Trattoria Roma", "trattoria roma") == 1.0
    assert name_similarity("Trattoria Roma", "Trattoria Romana") >= 0.8
    assert name_similarity("Trattoria Roma", "Sushi Bar Kyoto") < 0.5
    assert name_similarity("", "") == 1.0
    assert name_similarity("Roma", None) == 0.0


def test_extract_neighborhood():
    assert extract_neighborhood("Lange Reihe 5, St. Georg, Hamburg") == "St. Georg"
    assert extract_neighborhood("Lange Reihe 5, 20099, Hamburg") == "Hamburg"
    assert extract_neighborhood("Lange Reihe 5, HH, Hamburg") == "Hamburg"
    assert extract_neighborhood("Lange Reihe 5") is None
    assert extract_neighborhood(None) is None
