"""Tests for page/per-page normalization."""

from __future__ import annotations

import pytest

from gst_audit.core.pagination import DEFAULT_PER_PAGE, clamp_page, clamp_per_page, page_count


class TestClampPage:
    @pytest.mark.parametrize("value,expected", [(3, 3), ("2", 2), (0, 1), (-5, 1), ("abc", 1), (None, 1)])
    def test_values(self, value, expected):
        assert clamp_page(value) == expected


class TestClampPerPage:
    def test_missing_uses_default(self):
        assert clamp_per_page(None) == DEFAULT_PER_PAGE

    def test_minimum_is_ten(self):
        assert clamp_per_page(3) == 10

    def test_garbage_uses_default(self):
        assert clamp_per_page("lots") == DEFAULT_PER_PAGE

    def test_large_values_kept(self):
        assert clamp_per_page("750") == 750


class TestPageCount:
    def test_empty_is_one_page(self):
        assert page_count(0, 20) == 1

    def test_rounds_up(self):
        assert page_count(41, 20) == 3
