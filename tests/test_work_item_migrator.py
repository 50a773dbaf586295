"""
Tests for the field copy and path rewriting shared by both passes.
"""

import pytest

from work_item_migrator import rewrite_path


class TestRewritePath:
    def test_project_name_is_replaced(self):
        assert rewrite_path("ProjA\\Sprint1", "ProjA", "ProjB") == "ProjB\\Sprint1"

    def test_root_path_is_replaced(self):
        assert rewrite_path("ProjA", "ProjA", "ProjB") == "ProjB"

    def test_path_without_project_name_passes_through(self):
        assert rewrite_path("Other\\Sprint1", "ProjA", "ProjB") == "Other\\Sprint1"

    def test_replacement_is_case_sensitive(self):
        assert rewrite_path("proja\\Sprint1", "ProjA", "ProjB") == "proja\\Sprint1"

    def test_every_occurrence_is_replaced(self):
        # Literal substring replacement, including inside other segments.
        assert rewrite_path("ProjA\\ProjA-Team", "ProjA", "ProjB") == "ProjB\\ProjB-Team"

    @pytest.mark.parametrize("path", ["", None])
    def test_empty_path(self, path):
        assert rewrite_path(path, "ProjA", "ProjB") == path
