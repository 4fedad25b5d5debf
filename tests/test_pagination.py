"""Page slicing, count estimation and page range math."""

import pytest

from catalog_search.models import PageRange
from catalog_search.pagination import estimate_search_count, range_request, slice_page

IDS = [f"p{i}" for i in range(1, 8)]


@pytest.mark.parametrize(
    ("limit", "offset", "expected"),
    [
        (3, 0, ["p1", "p2", "p3"]),
        (3, 6, ["p7"]),
        (3, 7, []),
        (10, 20, []),
    ],
)
def test_slice_page(limit, offset, expected):
    assert slice_page(IDS, limit, offset) == expected


def test_full_page_reports_estimate_when_larger():
    assert estimate_search_count(page_offset=0, page_limit=10, hit_count=10, estimated_total=57) == 57


def test_full_page_never_reports_below_observed():
    # The index under-estimated: 30 hits already seen, 25 estimated.
    assert estimate_search_count(page_offset=20, page_limit=10, hit_count=10, estimated_total=25) == 30


def test_short_page_is_the_true_end():
    assert estimate_search_count(page_offset=20, page_limit=10, hit_count=4, estimated_total=100) == 24


def test_missing_estimate_falls_back_to_observed():
    assert estimate_search_count(page_offset=0, page_limit=5, hit_count=5, estimated_total=None) == 5


def test_count_is_monotonic_across_pages():
    hits_per_page = [10, 10, 10, 3]
    estimates = [25, 22, 35, 35]
    for page_index, (hit_count, estimate) in enumerate(zip(hits_per_page, estimates)):
        count = estimate_search_count(page_index * 10, 10, hit_count, estimate)
        observed = page_index * 10 + hit_count
        assert count >= observed


def test_range_request_covers_all_pages():
    assert range_request(PageRange(start=1, end=1), 12) == (0, 12)
    assert range_request(PageRange(start=2, end=4), 12) == (12, 36)
