import random
from datetime import datetime, timedelta, timezone

import pytest

from backend.common.errors import ValidationError
from backend.events_service.models import Event, RsvpStatus
from backend.events_service.validation import validate_comment_text, validate_event_payload


def make_event(**overrides):
    fields = dict(
        title="Bake Sale",
        category="fundraiser",
        date="2030-03-14",
        location="Church Hall",
        organizer="alice",
        organizer_id=1,
        event_id=10,
    )
    fields.update(overrides)
    return Event(**fields)


@pytest.mark.parametrize("raw, expected", [
    ("going", RsvpStatus.GOING),
    ("interested", RsvpStatus.INTERESTED),
    ("not_going", RsvpStatus.NONE),
    ("", RsvpStatus.NONE),
])
def test_parse_rsvp_status(raw, expected):
    assert RsvpStatus.parse(raw) is expected


@pytest.mark.parametrize("raw", ["maybe", "GOING", None, 1, "none"])
def test_parse_rsvp_status_rejects_unknown(raw):
    with pytest.raises(ValidationError):
        RsvpStatus.parse(raw)


def test_rsvp_same_status_twice_keeps_one_entry():
    event = make_event()

    event.set_rsvp(2, RsvpStatus.GOING)
    event.set_rsvp(2, RsvpStatus.GOING)

    assert len([r for r in event.rsvps if r.user_id == 2]) == 1
    assert event.attendees_going == 1


def test_rsvp_not_going_removes_entry():
    event = make_event()
    event.set_rsvp(2, RsvpStatus.GOING)
    event.set_rsvp(3, RsvpStatus.GOING)

    event.set_rsvp(2, RsvpStatus.NONE)

    assert event.attendees_going == 1
    assert event.rsvp_status_for(2) is RsvpStatus.NONE
    assert [r.user_id for r in event.rsvps] == [3]


def test_rsvp_switch_moves_between_counters():
    event = make_event()
    event.set_rsvp(2, RsvpStatus.GOING)

    event.set_rsvp(2, RsvpStatus.INTERESTED)

    assert event.attendees_going == 0
    assert event.attendees_interested == 1
    assert event.rsvp_status_for(2) is RsvpStatus.INTERESTED


def test_rsvp_counters_match_entries_after_random_sequence():
    rng = random.Random(1234)
    event = make_event()
    statuses = list(RsvpStatus)

    for _ in range(500):
        event.set_rsvp(rng.randint(1, 25), rng.choice(statuses))

        user_ids = [r.user_id for r in event.rsvps]
        assert len(user_ids) == len(set(user_ids))
        assert all(r.status is not RsvpStatus.NONE for r in event.rsvps)
        assert event.attendees_going == sum(1 for r in event.rsvps if r.status is RsvpStatus.GOING)
        assert event.attendees_interested == sum(1 for r in event.rsvps if r.status is RsvpStatus.INTERESTED)


def test_favorite_is_idempotent():
    event = make_event()

    assert event.set_favorite(5, True) is True
    assert event.set_favorite(5, True) is False
    assert event.favorites == [5]

    assert event.set_favorite(5, False) is True
    assert event.set_favorite(5, False) is False
    assert event.favorites == []


def test_comments_newest_first():
    event = make_event()
    t0 = datetime(2030, 1, 1, tzinfo=timezone.utc)

    event.add_comment(2, "bob", "first", t0)
    event.add_comment(3, "carol", "second", t0 + timedelta(minutes=1))
    event.add_comment(2, "bob", "third", t0 + timedelta(minutes=1))

    assert [c.text for c in event.comments_newest_first()] == ["third", "second", "first"]
    # stored order is untouched
    assert [c.text for c in event.comments] == ["first", "second", "third"]


def test_projection_for_viewer():
    event = make_event()
    event.set_rsvp(2, RsvpStatus.INTERESTED)
    event.set_favorite(2, True)

    mine = event.to_client_dict(2)
    assert mine["viewer_rsvp_status"] == "interested"
    assert mine["is_favorited"] is True
    assert mine["attendees_interested"] == 1

    stranger = event.to_client_dict(99)
    assert stranger["viewer_rsvp_status"] == ""
    assert stranger["is_favorited"] is False

    anonymous = event.to_client_dict()
    assert anonymous["viewer_rsvp_status"] == ""
    assert anonymous["is_favorited"] is False
    assert anonymous["id"] == 10
    assert anonymous["organizer"] == "alice"
    assert anonymous["rsvps"] == [{"user_id": 2, "status": "interested"}]


def test_validate_event_payload_defaults():
    fields = validate_event_payload({
        "title": "Yard Sale",
        "category": "garage_sale",
        "date": "2030-05-05",
        "location": "12 Elm St",
        "organizer_id": 999,
    })

    assert fields["max_capacity"] == 0
    assert fields["tags"] == []
    assert fields["description"] == ""
    assert "organizer_id" not in fields


@pytest.mark.parametrize("overrides", [
    {"title": "ab"},
    {"title": "t" * 101},
    {"category": "party"},
    {"date": "2030-02-30"},
    {"date": "06/01/2030"},
    {"location": ""},
    {"location": "l" * 201},
    {"description": "d" * 2001},
    {"contact_info": "c" * 101},
    {"image_url": "not a url"},
    {"max_capacity": -1},
    {"max_capacity": True},
    {"max_capacity": "10"},
    {"max_capacity": 2**31},
    {"max_capacity": 1e12},
    {"tags": ["t"] * 11},
    {"tags": "music"},
])
def test_validate_event_payload_rejects(overrides):
    payload = {
        "title": "Yard Sale",
        "category": "garage_sale",
        "date": "2030-05-05",
        "location": "12 Elm St",
    }
    payload.update(overrides)

    with pytest.raises(ValidationError):
        validate_event_payload(payload)


def test_validate_comment_text():
    assert validate_comment_text("  Hello  ") == "Hello"

    for bad in ("", "   ", None, 42, "x" * 501):
        with pytest.raises(ValidationError):
            validate_comment_text(bad)
