from datetime import datetime, timedelta, timezone

from meetdesk.utils.time_utils import SystemClock, describe_lead_time, ensure_utc, format_meeting_time


def test_ensure_utc():
    assert ensure_utc(None) is None
    assert ensure_utc(datetime(2025, 6, 1, 10, 0)) == datetime(2025, 6, 1, 10, 0, tzinfo=timezone.utc)

    shifted = ensure_utc(datetime(2025, 6, 1, 12, 0, tzinfo=timezone(timedelta(hours=2))))
    assert shifted.tzinfo == timezone.utc
    assert shifted.hour == 10


def test_describe_lead_time():
    assert describe_lead_time(30) == "30 minute(s)"
    assert describe_lead_time(60) == "1 hour(s)"
    assert describe_lead_time(1440) == "24 hour(s)"


def test_format_meeting_time():
    assert format_meeting_time(datetime(2025, 6, 1, 10, 0)) == "Jun 01, 2025 10:00 UTC"


def test_system_clock_is_utc():
    assert SystemClock().now().tzinfo == timezone.utc
