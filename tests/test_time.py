import pytest

from gasmeter.utils.time import format_elapsed, now_utc


class TestFormatElapsed:
    @pytest.mark.parametrize(
        "seconds, expected",
        [
            (1.2344, "1.234s"),
            (0.8502, "850.2ms"),
            (0.000012, "12µs"),
            (125.1, "2m5.1s"),
            (119.97, "1m59.97s"),
            (119.9999, "2m0s"),
            (60.0000001, "1m0s"),
            (-1, "0µs"),
        ],
    )
    def test_units(self, seconds, expected):
        assert format_elapsed(seconds) == expected


def test_now_utc_is_aware():
    assert now_utc().tzinfo is not None
