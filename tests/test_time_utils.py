from datetime import UTC, datetime

from backend.app.core.time import ensure_aware, utc_now, utc_today


def test_utc_now_is_timezone_aware_utc():
    value = utc_now()
    assert value.tzinfo is UTC


def test_utc_today_matches_utc_now():
    assert utc_today() == utc_now().date()


def test_ensure_aware_treats_naive_as_utc():
    naive = datetime(2030, 1, 1, 10, 0, 0)
    assert ensure_aware(naive).tzinfo is UTC
    assert ensure_aware(None) is None
