"""Vector normalization and cosine scoring."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import List, Sequence

import numpy as np


def normalize(vector: Sequence[float]) -> np.ndarray:
    """
    Rescale a vector to unit length.

    A vector whose sum of squares is exactly zero is returned unchanged.
    """
    v = np.asarray(vector, dtype=np.float32)
    sum_sq = float(np.dot(v, v))
    if sum_sq == 0.0:
        return v
    return v / np.sqrt(sum_sq)


def normalize_rows(matrix: np.ndarray) -> np.ndarray:
    """Normalize each row of a 2D array; zero rows stay zero."""
    m = np.asarray(matrix, dtype=np.float32)
    if m.ndim != 2:
        raise ValueError(f"Expected a 2D array of embeddings, got shape {m.shape}")
    norms = np.sqrt(np.einsum("ij,ij->i", m, m))
    norms[norms == 0.0] = 1.0
    return m / norms[:, None]


def similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Dot product of two already-normalized vectors (cosine similarity)."""
    va = np.asarray(a, dtype=np.float32)
    vb = np.asarray(b, dtype=np.float32)
    if va.shape != vb.shape:
        raise ValueError(f"Vector dimensions don't match: {va.shape[0]} vs {vb.shape[0]}")
    return float(np.dot(va, vb))


def _score_slice(query: np.ndarray, rows: np.ndarray) -> np.ndarray:
    if rows.shape[1] != query.shape[0]:
        raise ValueError(f"Vector dimensions don't match: {rows.shape[1]} vs {query.shape[0]}")
    return normalize_rows(rows) @ query


def score_matrix(query: Sequence[float], embeddings: np.ndarray, workers: int = 1) -> List[float]:
    """
    Score every embedding row against the query.

    Args:
        query: Normalized query vector
        embeddings: Raw (unnormalized) embeddings, one row per line
        workers: Number of threads to spread the rows across

    Returns:
        One score per row, in row order
    """
    q = np.asarray(query, dtype=np.float32)
    rows = np.asarray(embeddings, dtype=np.float32)
    if rows.shape[0] == 0:
        return []
    if rows.ndim != 2:
        raise ValueError(f"Expected a 2D array of embeddings, got shape {rows.shape}")

    workers = max(1, min(workers, rows.shape[0]))
    if workers == 1:
        return _score_slice(q, rows).tolist()

    slices = np.array_split(rows, workers)
    with ThreadPoolExecutor(max_workers=workers) as executor:
        parts = list(executor.map(lambda part: _score_slice(q, part), slices))
    return np.concatenate(parts).tolist()
