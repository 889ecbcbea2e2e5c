"""Unit tests for marker generation."""
import pytest

from markers.aggregator import (
    DEFAULT_CENTER,
    calculate_aggregate_center,
    filter_markers,
    generate_map_markers,
    marker_id,
)
from markers.models import UNRESOLVED_MARKER_ID


class TestMarkerId:
    """Test cases for marker_id."""

    def test_rounds_to_six_decimals(self):
        assert marker_id(37.7749, -122.4194) == "37.774900,-122.419400"
        assert marker_id(37.77490004, -122.41940004) == "37.774900,-122.419400"

    def test_negative_zero_folded(self):
        assert marker_id(-0.0000001, 0.0) == marker_id(0.0, 0.0) == "0.000000,0.000000"


class TestGenerateMapMarkers:
    """Test cases for generate_map_markers."""

    def test_groups_events_sharing_a_location(self, make_event):
        events = [
            make_event(37.7749, -122.4194),
            make_event(37.7749, -122.4194),
            make_event(38.5816, -121.4944),
        ]

        markers = generate_map_markers(events)

        assert len(markers) == 2
        assert [len(m.events) for m in markers] == [2, 1]
        assert markers[0].id == "37.774900,-122.419400"
        assert markers[0].events == (events[0], events[1])

    def test_nearby_coordinates_merge_after_rounding(self, make_event):
        events = [make_event(10.0000001, 20.0), make_event(10.0000002, 20.0)]

        markers = generate_map_markers(events)

        assert len(markers) == 1
        assert len(markers[0].events) == 2

    def test_unresolved_events_share_one_marker_placed_first(self, make_event):
        events = [
            make_event(10.0, 20.0),
            make_event(location='Somewhere vague'),
            make_event(30.0, 40.0),
            make_event(location='TBA'),
        ]

        markers = generate_map_markers(events)

        assert [m.id for m in markers] == [UNRESOLVED_MARKER_ID, "10.000000,20.000000", "30.000000,40.000000"]
        unresolved = markers[0]
        assert unresolved.events == (events[1], events[3])
        assert unresolved.latitude == pytest.approx(20.0)
        assert unresolved.longitude == pytest.approx(30.0)

    def test_unresolved_only_uses_default_center(self, make_event):
        markers = generate_map_markers([make_event(), make_event()])

        assert len(markers) == 1
        assert (markers[0].latitude, markers[0].longitude) == DEFAULT_CENTER

    def test_every_resolved_event_lands_in_exactly_one_marker(self, make_event):
        coords = [(1.0, 1.0), (2.0, 2.0), (1.0, 1.0), (3.5, -3.5), (2.0, 2.0), (1.0, 1.0)]
        events = [make_event(lat, lng) for lat, lng in coords] + [make_event()]

        markers = generate_map_markers(events)

        seen = [event.id for marker in markers for event in marker.events]
        assert sorted(seen) == sorted(event.id for event in events)
        assert len([m for m in markers if m.is_unresolved]) == 1
        for marker in markers:
            if not marker.is_unresolved:
                assert {marker_id(e.resolved_location.lat, e.resolved_location.lng) for e in marker.events} == {marker.id}

    def test_idempotent(self, make_event):
        events = [make_event(1.0, 2.0), make_event(), make_event(1.0, 2.0)]

        assert generate_map_markers(events) == generate_map_markers(events)

    def test_empty_input(self):
        assert generate_map_markers([]) == []


class TestAggregateCenter:
    """Test cases for calculate_aggregate_center."""

    def test_mean_of_resolved_events(self, make_event):
        events = [make_event(0.0, 0.0), make_event(10.0, 20.0), make_event(), make_event(10.0, 20.0)]

        lat, lng = calculate_aggregate_center(events)

        assert lat == pytest.approx(20.0 / 3)
        assert lng == pytest.approx(40.0 / 3)

    def test_no_resolved_events(self, make_event):
        assert calculate_aggregate_center([make_event()]) == DEFAULT_CENTER


class TestFilterMarkers:
    """Test cases for filter_markers."""

    def test_keeps_ids_and_drops_empty_markers(self, make_event):
        a = make_event(1.0, 1.0)
        b = make_event(1.0, 1.0)
        c = make_event(2.0, 2.0)
        u = make_event()
        markers = generate_map_markers([a, b, c, u])

        filtered = filter_markers(markers, [b, u])

        assert [m.id for m in filtered] == [UNRESOLVED_MARKER_ID, "1.000000,1.000000"]
        assert filtered[1].events == (b,)
        assert filtered[1].latitude == markers[1].latitude
        assert markers[1].events == (a, b)  # originals untouched

    def test_none_visible_events(self, make_event):
        markers = generate_map_markers([make_event(1.0, 1.0)])

        assert filter_markers(markers, None) == []
