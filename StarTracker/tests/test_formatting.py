"""
Tests for the report formatting helpers.
"""

import pytest

from core.formatting import delta_indicator, format_count, short_date, trend_icon


class TestFormatting:
    """Test the formatting helpers."""

    @pytest.mark.parametrize("delta,expected", [(5, "+5"), (-3, "-3"), (0, "0")])
    def test_delta_indicator(self, delta, expected):
        assert delta_indicator(delta) == expected

    def test_trend_icon(self):
        assert trend_icon(2) == "⬆️"
        assert trend_icon(-2) == "⬇️"
        assert trend_icon(0) == "➖"

    @pytest.mark.parametrize("n,expected", [
        (950, "950"),
        (1000, "1k"),
        (1234, "1.2k"),
        (3_400_000, "3.4M"),
        (2_000_000_000, "2B"),
    ])
    def test_format_count(self, n, expected):
        assert format_count(n) == expected

    def test_short_date(self):
        assert short_date("2026-01-08T12:30:00.000Z") == "2026-01-08"
