"""Title validity checker tests."""
import pytest

from pipeline.errors import TitleValidationError
from pipeline.validator import jaccard_similarity, validate_title


class TestJaccardSimilarity:
    """Tests for word-level Jaccard similarity."""

    def test_identical(self):
        """Identical word sets score 1."""
        assert jaccard_similarity("Team A wins", "team a WINS") == 1.0

    def test_disjoint(self):
        """No shared words score 0."""
        assert jaccard_similarity("Late surge seals derby", "Team A beats Team B") == 0.0

    def test_partial_overlap(self):
        """Shared words over the union."""
        assert jaccard_similarity("a b c", "b c d") == pytest.approx(0.5)


class TestValidateTitle:
    """Tests for validate_title."""

    def test_accepts_distinct_title(self):
        """A long, distinct title passes unchanged."""
        title = "Late surge seals derby triumph for the champions"
        assert validate_title(title, "Team A beats Team B 3-1", min_length=10, threshold=0.4) == title

    def test_rejects_short_title(self):
        """Titles under the minimum length are rejected."""
        with pytest.raises(TitleValidationError):
            validate_title("Derby", "Team A beats Team B", min_length=10, threshold=0.4)

    def test_rejects_identical_title(self):
        """A case-insensitive copy of the original is rejected."""
        with pytest.raises(TitleValidationError):
            validate_title("TEAM A BEATS TEAM B 3-1", "Team A beats Team B 3-1", min_length=10, threshold=0.4)

    def test_rejects_similar_title(self):
        """Similarity above the threshold is rejected."""
        with pytest.raises(TitleValidationError):
            validate_title("Team A beats Team B again", "Team A beats Team B 3-1", min_length=10, threshold=0.4)

    def test_similarity_at_threshold_passes(self):
        """Exactly the threshold is still accepted."""
        # 2 shared of 5 distinct words
        validate_title("alpha beta gamma", "alpha beta delta epsilon", min_length=5, threshold=0.4)

    def test_no_original_checks_length_only(self):
        """Without an original title only the length applies."""
        assert validate_title("Team A vs Team B preview", None, min_length=10) == "Team A vs Team B preview"
