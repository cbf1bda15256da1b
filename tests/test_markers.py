"""Unit tests for marker grouping and the marker layer."""
from datetime import date

from mapping.markers import MarkerLayer, group_markers, popup_text
from processor.models import Event

DAY = date(2026, 10, 20)


def make_event(event_id, location='Hebburn Iona Social Club', day=DAY, start_time='10:00',
               title=None, lat=54.975, lng=-1.513, is_elapsed=False):
    return Event(
        id=event_id,
        title=title or f"Event {event_id}",
        description='All welcome',
        location=location,
        category='social',
        categories=('social',),
        date=day,
        time=start_time or 'All day',
        start_time=start_time,
        end_time=None,
        lat=lat,
        lng=lng,
        is_elapsed=is_elapsed,
    )


class FakeSurface:
    """Map surface that records placed and removed markers."""

    def __init__(self):
        self.placed = []
        self.removed = []

    def place_marker(self, lat, lng, content, on_click):
        handle = {'lat': lat, 'lng': lng, 'content': content, 'on_click': on_click}
        self.placed.append(handle)
        return handle

    def remove_marker(self, handle):
        self.removed.append(handle)


class TestGroupMarkers:
    """Test cases for group_markers."""

    def test_same_venue_same_day_share_marker(self):
        """Test grouping by location text and date, ordered by start time."""
        events = [
            make_event(1, start_time='14:00'),
            make_event(2, start_time='09:30'),
            make_event(3, day=date(2026, 10, 21)),
            make_event(4, location='Walker Activity Dome', lat=54.985, lng=-1.58),
        ]

        placements = group_markers(events, max_markers=100)

        assert len(placements) == 3
        first = placements[0]
        assert [e.id for e in first.events] == [2, 1]
        assert first.primary_event_id == 2
        assert first.to_dict() == {
            'lat': 54.975,
            'lng': -1.513,
            'location': 'Hebburn Iona Social Club',
            'date': '2026-10-20',
            'eventIds': [2, 1],
        }

    def test_all_day_sorts_after_timed(self):
        events = [make_event(1, start_time='10:00'), make_event(2, start_time=None)]

        placement = group_markers(events, max_markers=100)[0]

        assert [e.id for e in placement.events] == [1, 2]

    def test_max_markers_limits_events(self):
        """Test that only the first N events are placed."""
        events = [make_event(n, location=f"Venue {n}") for n in range(1, 6)]

        placements = group_markers(events, max_markers=3)

        assert [p.primary_event_id for p in placements] == [1, 2, 3]

    def test_empty(self):
        assert group_markers([], max_markers=100) == []


class TestPopupText:
    """Test cases for popup_text."""

    def test_single_event_details(self):
        placement = group_markers([make_event(1, title='Quiz Night', is_elapsed=True)], 100)[0]

        text = popup_text(placement)

        assert 'Quiz Night (Ended)' in text
        assert 'Social Event' in text
        assert 'Organizer: VFVIC' in text

    def test_grouped_header(self):
        placement = group_markers([make_event(1), make_event(2)], 100)[0]

        assert popup_text(placement).startswith('2 events at Hebburn Iona Social Club')


class TestMarkerLayer:
    """Test cases for MarkerLayer."""

    def test_show_places_markers_and_indexes_events(self):
        surface = FakeSurface()
        selected = []
        layer = MarkerLayer(surface, selected.append)
        placements = group_markers(
            [make_event(1), make_event(2), make_event(3, location='Walker Activity Dome')], 100
        )

        layer.show(placements)

        assert len(layer) == 2
        assert layer.marker_for(1) is layer.marker_for(2)
        assert layer.marker_for(3) is surface.placed[1]
        assert layer.marker_for(99) is None

        surface.placed[0]['on_click']()
        surface.placed[1]['on_click']()
        assert selected == [1, 3]

    def test_show_replaces_previous_markers(self):
        surface = FakeSurface()
        layer = MarkerLayer(surface, lambda event_id: None)

        layer.show(group_markers([make_event(1)], 100))
        old_handle = layer.marker_for(1)
        layer.show(group_markers([make_event(2)], 100))

        assert surface.removed == [old_handle]
        assert layer.marker_for(1) is None
        assert len(layer) == 1

    def test_clear(self):
        surface = FakeSurface()
        layer = MarkerLayer(surface, lambda event_id: None)
        layer.show(group_markers([make_event(1)], 100))

        layer.clear()

        assert len(layer) == 0
        assert len(surface.removed) == 1

    def test_custom_popup_renderer(self):
        surface = FakeSurface()
        layer = MarkerLayer(surface, lambda event_id: None, render_popup=lambda p: p.location.upper())

        layer.show(group_markers([make_event(1)], 100))

        assert surface.placed[0]['content'] == 'HEBBURN IONA SOCIAL CLUB'
