"""
Unit tests for vector normalization and scoring.
"""

import numpy as np
import pytest

from vecgrep.scoring import normalize, normalize_rows, score_matrix, similarity


class TestNormalize:
    """Test suite for normalize and normalize_rows."""

    def test_normalize_vector(self):
        """Non-zero vectors are rescaled to unit length, direction preserved."""
        normalized = normalize([3.0, 4.0, 0.0])

        assert abs(np.linalg.norm(normalized) - 1.0) < 0.0001
        assert abs(normalized[0] - 0.6) < 0.0001
        assert abs(normalized[1] - 0.8) < 0.0001
        assert normalized[2] == 0.0

    def test_zero_vector_unchanged(self):
        """A zero vector is returned as-is."""
        normalized = normalize([0.0, 0.0, 0.0])
        assert normalized.tolist() == [0.0, 0.0, 0.0]

    def test_normalize_rows_keeps_zero_rows(self):
        """Zero rows stay zero while other rows become unit length."""
        rows = normalize_rows(np.array([[3.0, 4.0], [0.0, 0.0], [0.0, 2.0]]))

        assert np.allclose(rows[0], [0.6, 0.8])
        assert rows[1].tolist() == [0.0, 0.0]
        assert np.allclose(rows[2], [0.0, 1.0])

    def test_normalize_rows_rejects_1d(self):
        """Row normalization needs a matrix."""
        with pytest.raises(ValueError):
            normalize_rows(np.array([1.0, 2.0]))


class TestSimilarity:
    """Test suite for similarity."""

    def test_cosine_similarity(self):
        """Dot product of unit vectors is their cosine."""
        assert abs(similarity([1.0, 0.0, 0.0], [1.0, 0.0, 0.0]) - 1.0) < 0.0001
        assert abs(similarity([1.0, 0.0, 0.0], [0.0, 1.0, 0.0])) < 0.0001
        assert abs(similarity([1.0, 0.0, 0.0], [-1.0, 0.0, 0.0]) + 1.0) < 0.0001

    def test_zero_vector_scores_zero(self):
        """Similarity against the unnormalized zero vector is 0."""
        assert similarity(normalize([0.0, 0.0]), normalize([1.0, 1.0])) == 0.0

    def test_dimension_mismatch(self):
        """Vectors of different length are a programming error."""
        with pytest.raises(ValueError, match="Vector dimensions don't match"):
            similarity([1.0, 0.0], [1.0, 0.0, 0.0])


class TestScoreMatrix:
    """Test suite for score_matrix."""

    def setup_method(self):
        """Set up test fixtures."""
        rng = np.random.default_rng(7)
        self.embeddings = rng.normal(size=(101, 8)).astype(np.float32)
        self.embeddings[5] = 0.0
        self.query = normalize(rng.normal(size=8))

    def test_scores_are_cosines(self):
        """Each score is the cosine between the row and the query."""
        scores = score_matrix(self.query, self.embeddings)

        assert len(scores) == 101
        for row, score in zip(self.embeddings, scores):
            expected = similarity(normalize(row), self.query)
            assert abs(score - expected) < 1e-5
        assert scores[5] == 0.0

    def test_parallel_matches_serial(self):
        """Fanning out across threads keeps order and values."""
        serial = score_matrix(self.query, self.embeddings, workers=1)
        parallel = score_matrix(self.query, self.embeddings, workers=4)
        assert np.allclose(serial, parallel)

    def test_more_workers_than_rows(self):
        """Worker count is capped by the number of rows."""
        scores = score_matrix(self.query, self.embeddings[:2], workers=16)
        assert len(scores) == 2

    def test_empty_input(self):
        """No rows give no scores."""
        assert score_matrix(self.query, np.zeros((0, 8), dtype=np.float32), workers=4) == []

    def test_dimension_mismatch(self):
        """Query and rows must share a dimension."""
        with pytest.raises(ValueError):
            score_matrix([1.0, 0.0], self.embeddings)
