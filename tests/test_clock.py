from datetime import date, time, timezone

from pysurvivor.engine.clock import to_absolute_instant, utc_now
from tests.support import utc


def test_fixed_time_on_dst_end_sunday():
    # EST is already in effect at 1pm on the fall-back Sunday.
    assert to_absolute_instant("America/New_York", date(2024, 11, 3), time(13, 0)) == utc(2024, 11, 3, 18, 0)


def test_fixed_time_on_dst_start_sunday():
    assert to_absolute_instant("America/New_York", date(2024, 3, 10), time(13, 0)) == utc(2024, 3, 10, 17, 0)


def test_summer_and_winter_offsets():
    assert to_absolute_instant("America/New_York", date(2024, 7, 7), time(13, 0)) == utc(2024, 7, 7, 17, 0)
    assert to_absolute_instant("America/New_York", date(2024, 12, 1), time(13, 0)) == utc(2024, 12, 1, 18, 0)


def test_second_pass_corrects_offset_after_fall_back():
    # First guess lands before the 06:00Z switch; the corrected instant does not.
    assert to_absolute_instant("America/New_York", date(2024, 11, 3), time(3, 0)) == utc(2024, 11, 3, 8, 0)


def test_second_pass_corrects_offset_after_spring_forward():
    assert to_absolute_instant("America/New_York", date(2024, 3, 10), time(3, 30)) == utc(2024, 3, 10, 7, 30)


def test_repeated_hour_resolves_without_error():
    result = to_absolute_instant("America/New_York", date(2024, 11, 3), time(1, 30))
    assert result == utc(2024, 11, 3, 5, 30)


def test_other_zones():
    assert to_absolute_instant("Europe/London", date(2024, 7, 1), time(13, 0)) == utc(2024, 7, 1, 12, 0)
    assert to_absolute_instant("America/Los_Angeles", date(2024, 11, 3), time(13, 0)) == utc(2024, 11, 3, 21, 0)


def test_result_is_utc():
    result = to_absolute_instant("America/Chicago", date(2024, 9, 8), time(12, 0))
    assert result.tzinfo is timezone.utc
    assert result == utc(2024, 9, 8, 17, 0)


def test_utc_now_is_aware():
    assert utc_now().tzinfo is not None
