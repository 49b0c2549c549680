from datetime import datetime

import pytest

from eonchat.utils.activity import build_activity_histogram, format_hour, get_activity_report


@pytest.mark.parametrize(
    "hour,label",
    [(0, "12:00 AM"), (9, "09:00 AM"), (12, "12:00 PM"), (14, "02:00 PM"), (23, "11:00 PM")],
)
def test_format_hour(hour, label):
    assert format_hour(hour) == label


def test_histogram_accepts_datetimes_and_iso_strings():
    histogram = build_activity_histogram([
        datetime(2024, 1, 1, 14, 5),
        "2024-01-02T14:30:00Z",
        "2024-01-02T09:00:00",
    ])

    assert histogram == {14: 2, 9: 1}


def test_report_for_empty_conversation():
    assert get_activity_report([]) is None


def test_report_picks_busiest_hour():
    stamps = [datetime(2024, 1, 1, 14, m) for m in range(3)] + [datetime(2024, 1, 1, 8, 0)]

    report = get_activity_report(stamps)

    assert report["peak_time"] == "02:00 PM"
    assert report["peak_hour"] == 14
    assert report["message_count"] == 3
    assert report["total_analyzed"] == 4
    assert report["percentage"] == "75.0"
    assert report["histogram"] == {8: 1, 14: 3}


def test_report_tie_goes_to_earliest_hour():
    report = get_activity_report([datetime(2024, 1, 1, 20), datetime(2024, 1, 1, 7)])

    assert report["peak_hour"] == 7
    assert report["percentage"] == "50.0"
