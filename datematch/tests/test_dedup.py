from __future__ import annotations

from datematch.venues.dedup import is_same_venue, merge_venue, merge_venue_lists


def test_same_name_is_duplicate_regardless_of_distance(make_venue):
    a = make_venue("g1", name="Trattoria Roma")
    b = make_venue("f1", name="trattoria roma!", latitude=48.1, longitude=11.5)
    assert is_same_venue(a, b)


def test_similar_name_nearby_is_duplicate(make_venue):
    a = make_venue("g1", name="Trattoria Roma")
    b = make_venue("f1", name="Trattoria Romana", latitude=53.5512, longitude=9.9937)
    assert is_same_venue(a, b)


def test_similar_name_far_away_is_not_duplicate(make_venue):
    a = make_venue("g1", name="Trattoria Roma")
    b = make_venue("f1", name="Trattoria Romana", latitude=53.5611, longitude=9.9937)
    assert not is_same_venue(a, b)


def test_different_name_nearby_is_not_duplicate(make_venue):
    a = make_venue("g1", name="Trattoria Roma")
    b = make_venue("f1", name="Sushi Kyoto")
    assert not is_same_venue(a, b)


def test_merge_lists_collapses_one_duplicate(make_venue):
    primary = [
        make_venue("g1", name="Trattoria Roma", photos=["a.jpg", "b.jpg"]),
        make_venue("g2", name="Le Petit Bistro", latitude=53.56),
    ]
    secondary = [
        make_venue("f1", name="Trattoria Roma", photos=["b.jpg", "c.jpg"]),
        make_venue("f2", name="Sushi Kyoto", latitude=53.57),
        make_venue("f3", name="Burger Bude", latitude=53.58),
    ]

    merged = merge_venue_lists(primary, secondary)

    assert len(merged) == len(primary) + len(secondary) - 1
    roma = merged[0]
    assert roma.id == "g1"
    assert roma.photos == ["a.jpg", "b.jpg", "c.jpg"]
    assert len(set(roma.photos)) == len(roma.photos)


def test_merge_venue_fills_missing_fields(make_venue):
    primary = make_venue(
        "g1",
        name="Trattoria Roma",
        tags=["romantic"],
        external_ids={"google_place_id": "g1"},
    )
    secondary = make_venue(
        "f1",
        name="Trattoria Roma",
        tags=["romantic", "Italian"],
        description="Family-run since 1972",
        phone="+49 40 123",
        website="https://roma.example",
        rating=4.1,
        external_ids={"foursquare_id": "f1"},
    )

    merged = merge_venue(primary, secondary)

    assert merged.id == "g1"
    assert merged.tags == ["romantic", "Italian"]
    assert merged.description == "Family-run since 1972"
    assert merged.phone == "+49 40 123"
    assert merged.website == "https://roma.example"
    assert merged.rating == 4.1
    assert merged.external_ids == {"google_place_id": "g1", "foursquare_id": "f1"}


def test_merge_venue_keeps_primary_values(make_venue):
    primary = make_venue("g1", name="Roma", description="Primary text", rating=4.6)
    secondary = make_venue("f1", name="Roma", description="Other text", rating=3.0)

    merged = merge_venue(primary, secondary)

    assert merged.description == "Primary text"
    assert merged.rating == 4.6
