"""
Telemedicine rule tests: call durations, channel names and availability slots.
"""

from datetime import datetime, timezone

from homecare.domain.telemedicine import call_duration_seconds, channel_name_for, sanitize_availability_slots


def test_channel_name_is_derived_from_appointment_id():
    assert channel_name_for("abc123") == "fausford-abc123"


def test_call_duration_accepts_mixed_timestamp_forms():
    started = datetime(2030, 1, 1, 10, 0, tzinfo=timezone.utc)

    assert call_duration_seconds(started, "2030-01-01T10:01:05.900Z") == 65


def test_call_duration_treats_naive_timestamps_as_utc():
    assert call_duration_seconds(datetime(2030, 1, 1, 10), "2030-01-01T10:00:30+00:00") == 30


def test_call_duration_is_never_negative():
    assert call_duration_seconds("2030-01-01T10:05:00Z", "2030-01-01T10:00:00Z") == 0


def test_call_duration_needs_both_ends():
    assert call_duration_seconds(None, "2030-01-01T10:00:00Z") is None
    assert call_duration_seconds("2030-01-01T10:00:00Z", "soon") is None


def test_non_list_availability_is_empty():
    assert sanitize_availability_slots(None) == []
    assert sanitize_availability_slots({"weekly": {}}) == []


def test_availability_keeps_only_known_slot_fields():
    slots = sanitize_availability_slots(
        [{"weekly": {"Tue": {"enabled": False}}, "specialties": ["wound care"], "providerLevel": "RN", "notes": "x"}]
    )

    assert slots == [{"weekly": {"Tue": {"enabled": False}}, "specialties": ["wound care"], "providerLevel": "RN"}]


def test_availability_drops_wrongly_typed_and_empty_slots():
    slots = sanitize_availability_slots(
        [{}, 7, {"weekly": "Mon"}, {"providerLevel": 3}, {"calendarSlots": []}, {"specialties": ["peds"]}]
    )

    assert slots == [{"specialties": ["peds"]}]


def test_calendar_slots_need_parseable_start_and_end():
    [slot] = sanitize_availability_slots(
        [
            {
                "calendarSlots": [
                    {"startAt": "2030-02-01T08:00:00+02:00", "endAt": "2030-02-01T09:00:00+02:00", "room": 4},
                    {"startAt": "2030-02-01T08:00:00Z", "endAt": ""},
                    {"endAt": "2030-02-01T09:00:00Z"},
                    "08:00-09:00",
                ]
            }
        ]
    )

    assert slot["calendarSlots"] == [
        {
            "startAt": datetime(2030, 2, 1, 6, tzinfo=timezone.utc),
            "endAt": datetime(2030, 2, 1, 7, tzinfo=timezone.utc),
            "room": 4,
        }
    ]


def test_slot_with_only_invalid_calendar_entries_is_dropped():
    assert sanitize_availability_slots([{"calendarSlots": [{"startAt": "bad", "endAt": "worse"}]}]) == []
