"""Tests for the exclusion filter."""

import pytest

from pypublish.sync.ignore import DEFAULT_EXCLUDE_PATTERNS, ExclusionFilter


class TestDefaultExclusions:
    """Tests for the built-in exclusion rules."""

    @pytest.mark.parametrize(
        "path",
        [
            ".git/config",
            ".git/objects/ab/cdef",
            ".gitignore",
            ".github/workflows/publish.yml",
            ".obsidian/app.json",
            ".obsidian/plugins/x/main.js",
            "node_modules/pkg/index.js",
        ],
    )
    def test_excluded(self, path):
        """Version control, editor and dependency files are excluded."""
        assert ExclusionFilter().is_excluded(path)

    @pytest.mark.parametrize(
        "path",
        [
            "index.md",
            "img/a.png",
            "notes/.git/config",
            "docs/node_modules.md",
            "my.obsidian.md",
        ],
    )
    def test_not_excluded(self, path):
        """Patterns only match at the start of the relative path."""
        assert not ExclusionFilter().is_excluded(path)

    def test_default_patterns_used_when_none_given(self):
        """Test that the default patterns are compiled."""
        exclude = ExclusionFilter()
        assert [p.pattern for p in exclude.patterns] == list(DEFAULT_EXCLUDE_PATTERNS)


class TestCustomPatterns:
    """Tests for filters built from explicit patterns."""

    def test_callable(self):
        """The filter can be called directly as a predicate."""
        exclude = ExclusionFilter([r"^drafts/"])
        assert exclude("drafts/wip.md")
        assert not exclude("posts/done.md")

    def test_empty_pattern_list_excludes_nothing(self):
        """An empty list disables exclusion."""
        exclude = ExclusionFilter([])
        assert not exclude(".git/config")

    def test_repr_lists_patterns(self):
        """repr shows the configured patterns."""
        assert "drafts" in repr(ExclusionFilter([r"^drafts/"]))
