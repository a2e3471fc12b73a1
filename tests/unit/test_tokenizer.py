"""Unit tests for the tokenizer module."""

from sketchflow.tokenizer import (
    normalize_arrows,
    split_branches,
    split_steps,
    tokenize,
)


class TestNormalizeArrows:
    """Tests for normalize_arrows()."""

    def test_unicode_arrow_replaced(self):
        """Test that the unicode arrow becomes ->."""
        assert normalize_arrows("A → B") == "A -> B"

    def test_ascii_arrow_untouched(self):
        """Test that -> is left as is."""
        assert normalize_arrows("A -> B") == "A -> B"

    def test_mixed_arrows(self):
        """Test that both forms can appear in one text."""
        assert normalize_arrows("A → B -> C→D") == "A -> B -> C->D"


class TestSplitBranches:
    """Tests for split_branches()."""

    def test_single_branch(self):
        """Test text without separators."""
        assert split_branches("A -> B") == ["A -> B"]

    def test_branches_trimmed(self):
        """Test that whitespace around branches is removed."""
        assert split_branches("  A -> B ;  no -> C  ") == ["A -> B", "no -> C"]

    def test_empty_branches_dropped(self):
        """Test that empty and blank branches are discarded."""
        assert split_branches("A;; ;B;") == ["A", "B"]


class TestSplitSteps:
    """Tests for split_steps()."""

    def test_steps_trimmed(self):
        """Test that steps are trimmed."""
        assert split_steps("Start  ->   Qualify lead? yes -> Book call") == [
            "Start",
            "Qualify lead? yes",
            "Book call",
        ]

    def test_arrow_without_spaces(self):
        """Test arrows written without surrounding spaces."""
        assert split_steps("A->B->C") == ["A", "B", "C"]

    def test_empty_steps_dropped(self):
        """Test that dangling arrows produce no empty steps."""
        assert split_steps("-> A -> -> B ->") == ["A", "B"]


class TestTokenize:
    """Tests for tokenize()."""

    def test_empty_input(self):
        """Test that empty text has no branches."""
        assert tokenize("") == []

    def test_whitespace_input(self):
        """Test that whitespace-only text has no branches."""
        assert tokenize("  \n\t ") == []

    def test_branches_and_steps(self):
        """Test a full workflow with two branches."""
        text = "Start → Qualify lead? yes → Book call; no → Send email → End"
        assert tokenize(text) == [
            ["Start", "Qualify lead? yes", "Book call"],
            ["no", "Send email", "End"],
        ]

    def test_arrow_only_branch_keeps_its_slot(self):
        """Test that a branch of only arrows stays as an empty list."""
        assert tokenize("-> ; no -> C") == [[], ["no", "C"]]

    def test_unicode_and_ascii_equivalent(self):
        """Test that both arrow forms tokenize identically."""
        assert tokenize("A -> B -> C") == tokenize("A → B → C")
