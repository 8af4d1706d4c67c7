from datetime import datetime, timedelta, timezone

import pytest

from sopmetrics.data.models import MonthlyBucketing
from sopmetrics.utils.data_processing_utils import (
    format_relative_time,
    group_by_attribute,
    is_after_cutoff,
    month_label,
    newest_first,
    ratio_percent,
    round_one_decimal,
)
from sopmetrics.utils.safe_ops import safe_parse_datetime

UTC = timezone.utc


class TestPercentages:
    @pytest.mark.parametrize(
        "numerator,denominator,expected",
        [(0, 0, 0), (0, 5, 0), (5, 5, 100), (1, 3, 33), (2, 3, 67), (1, 2, 50), (1, 8, 13), (3, 4, 75)],
    )
    def test_ratio_percent(self, numerator, denominator, expected):
        assert ratio_percent(numerator, denominator) == expected

    @pytest.mark.parametrize(
        "value,expected", [(0.25, 0.3), (1.04, 1.0), (2.0, 2.0), (0.75, 0.8), (-0.5, -0.5)]
    )
    def test_round_one_decimal(self, value, expected):
        assert round_one_decimal(value) == expected


class TestWindowHelpers:
    def test_cutoff_is_exclusive(self):
        cutoff = datetime(2024, 1, 1, tzinfo=UTC)
        assert not is_after_cutoff(cutoff, cutoff)
        assert is_after_cutoff(cutoff + timedelta(microseconds=1), cutoff)
        assert is_after_cutoff(cutoff - timedelta(days=999), None)
        assert not is_after_cutoff(None, cutoff)

    def test_group_by_attribute_keeps_first_seen_order(self, make_event):
        events = [make_event("b"), make_event("a"), make_event("b")]
        grouped = group_by_attribute(events, "step_id")
        assert list(grouped) == ["b", "a"]
        assert len(grouped["b"]) == 2

    def test_newest_first_breaks_ties_by_id(self, make_sop, now):
        sops = [
            make_sop("b", created_at=now),
            make_sop("c", created_at=now - timedelta(days=1)),
            make_sop("a", created_at=now),
        ]

        assert [s.id for s in newest_first(sops)] == ["a", "b", "c"]
        assert [s.id for s in newest_first(sops, limit=2)] == ["a", "b"]
        assert [s.id for s in newest_first(sops, descending=False)] == ["c", "a", "b"]


class TestLabels:
    def test_month_label(self):
        ts = datetime(2024, 9, 3, tzinfo=UTC)
        assert month_label(ts) == "Sep"
        assert month_label(ts, MonthlyBucketing.YEAR_MONTH) == "Sep 2024"

    @pytest.mark.parametrize(
        "age,expected",
        [
            (timedelta(minutes=20), "0 hours ago"),
            (timedelta(hours=5), "5 hours ago"),
            (timedelta(hours=23, minutes=59), "23 hours ago"),
            (timedelta(hours=24), "Yesterday"),
            (timedelta(hours=47), "Yesterday"),
            (timedelta(hours=48), "2 days ago"),
            (timedelta(days=9, hours=23), "9 days ago"),
            (-timedelta(hours=2), "0 hours ago"),
        ],
    )
    def test_format_relative_time(self, now, age, expected):
        assert format_relative_time(now - age, now) == expected


class TestParseDatetime:
    @pytest.mark.parametrize(
        "value",
        [
            "2024-01-01T00:00:00Z",
            "2024-01-01T02:00:00+02:00",
            "2024-01-01T00:00:00",
            1704067200000,
            "1704067200000",
            {"$date": "2024-01-01T00:00:00Z"},
            '{"$date": "2024-01-01T00:00:00Z"}',
            datetime(2024, 1, 1),
        ],
    )
    def test_supported_formats(self, value):
        assert safe_parse_datetime(value) == datetime(2024, 1, 1, tzinfo=UTC)

    def test_result_is_utc(self):
        parsed = safe_parse_datetime("2024-01-01T02:00:00+02:00")
        assert parsed.utcoffset() == timedelta(0)

    @pytest.mark.parametrize("value", [None, "", "yesterday", True, [], '{"when": 1}'])
    def test_rejects_unknown_formats(self, value):
        with pytest.raises(ValueError):
            safe_parse_datetime(value)
