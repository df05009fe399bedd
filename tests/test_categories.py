"""
Tests for utils/categories.py: category membership and list splitting.
"""
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from utils.categories import CATEGORIES, is_valid_category, split_categories


class TestCategoryList:
    def test_has_42_labels(self):
        assert len(CATEGORIES) == 42

    def test_historical_duplicates_kept(self):
        assert CATEGORIES.count("General") == 2
        assert CATEGORIES.count("Real Estate") == 2

    def test_both_label_generations_present(self):
        assert "Art.Entertainment.Music.Movies" in CATEGORIES
        assert "Seo. Web Design" in CATEGORIES
        assert "Food & Beverages" in CATEGORIES
        assert "Computer & IT" in CATEGORIES


class TestIsValidCategory:
    @pytest.mark.parametrize("name", [
        "Tech.Mobile", "Auto", "Seo. Web Design", "Gambling & Casinos", "Language",
    ])
    def test_members_are_valid(self, name):
        assert is_valid_category(name) is True

    @pytest.mark.parametrize("name", [
        "tech.mobile", "Tech", "", " Auto", "Auto ", "Cooking",
    ])
    def test_non_members_are_invalid(self, name):
        assert is_valid_category(name) is False

    @pytest.mark.parametrize("value", [None, 5, ["Auto"]])
    def test_non_string_is_invalid(self, value):
        assert is_valid_category(value) is False


class TestSplitCategories:
    def test_blank_means_no_categories(self):
        assert split_categories("") == []
        assert split_categories("   ") == []
        assert split_categories(None) == []

    def test_members_are_not_trimmed(self):
        assert split_categories("Auto, Business ,Finance") == ["Auto", " Business ", "Finance"]
        assert not is_valid_category(" Business ")

    def test_empty_member_is_kept(self):
        assert split_categories("Auto,,Finance") == ["Auto", "", "Finance"]
