"""
Embedding module for vecgrep.

Uses sentence-transformers to convert lines of text into vector embeddings.
"""

import os
import sys
import threading
from typing import List, Optional

import numpy as np

from .errors import EmbeddingError
from .settings import DEFAULT_MODEL


def resolve_model_path(model_name_or_path: str, offline: bool = False) -> str:
    """Resolve a HF model id to something SentenceTransformer can load.

    Local paths are returned as-is. With ``offline`` the model must already be
    in the local HF cache.
    """
    name = (model_name_or_path or "").strip()
    if not name:
        raise EmbeddingError("Model name is empty.")
    if os.path.exists(name) or not offline:
        return name
    try:
        from huggingface_hub import snapshot_download
    except ImportError as exc:
        raise EmbeddingError(f"huggingface_hub is required to load '{name}' offline: {exc}") from exc
    try:
        return snapshot_download(repo_id=name, local_files_only=True)
    except Exception as exc:
        raise EmbeddingError(
            f"Model '{name}' is not available in the local HF cache. "
            "Download it (with network access) before running offline."
        ) from exc


class Embedder:
    """Handles line embedding using sentence-transformers."""

    def __init__(self, model_name: Optional[str] = None, offline: bool = False, verbose: bool = False):
        """
        Initialize the embedder.

        Args:
            model_name: Name or path of the sentence-transformers model to use.
                       Defaults to `VECGREP_MODEL` or `minishlab/potion-base-8M`.
            offline: Only load the model from the local HF cache.
            verbose: Print model loading progress to stderr.
        """
        self.model_name = model_name or os.environ.get("VECGREP_MODEL") or DEFAULT_MODEL
        self.offline = offline
        self.verbose = verbose
        self.model = None
        self.embedding_dim = 256  # potion-base-8M; refined after load
        self._load_lock = threading.Lock()

    def _log(self, message: str) -> None:
        if self.verbose:
            print(message, file=sys.stderr)

    def load_model(self):
        """Lazy load the sentence-transformers model, once per embedder."""
        if self.model is not None:
            return
        with self._load_lock:
            if self.model is None:
                self._load_model()

    def _load_model(self):
        try:
            self._log(f"Loading sentence-transformers model: {self.model_name}")
            from sentence_transformers import SentenceTransformer
        except ImportError as e:
            raise EmbeddingError(
                "sentence-transformers is required for embeddings. "
                f"Install it and ensure model '{self.model_name}' is available. Reason: {e}"
            ) from e

        try:
            resolved = resolve_model_path(self.model_name, offline=self.offline)
            model = SentenceTransformer(resolved)
            test_embedding = model.encode(["test"], convert_to_numpy=True)
            self.embedding_dim = int(test_embedding.shape[1])
            self.model = model
            self._log(f"Model loaded. Embedding dimension: {self.embedding_dim}")
        except Exception as e:
            self.model = None
            raise EmbeddingError(f"Failed to load model '{self.model_name}': {e}") from e

    def embed(self, text: str) -> List[float]:
        """
        Convert one line to an embedding vector.

        Blank lines map to the zero vector.
        """
        self.load_model()

        if not text or not text.strip():
            return [0.0] * self.embedding_dim

        try:
            embedding = self.model.encode([text], convert_to_numpy=True)
            return np.asarray(embedding[0], dtype=np.float32).tolist()
        except Exception as e:
            raise EmbeddingError(f"Embedding failed: {e}") from e

    def embed_batch(self, texts: List[str], batch_size: int = 1024) -> np.ndarray:
        """
        Convert many lines to embedding vectors.

        Args:
            texts: Lines to embed, in order
            batch_size: Number of texts per model call

        Returns:
            Array of shape (len(texts), embedding_dim), row i belonging to texts[i]
        """
        self.load_model()

        result = np.zeros((len(texts), self.embedding_dim), dtype=np.float32)
        positions = [i for i, text in enumerate(texts) if text and text.strip()]
        if not positions:
            return result

        try:
            embeddings = self.model.encode(
                [texts[i] for i in positions],
                batch_size=batch_size,
                convert_to_numpy=True,
            )
        except Exception as e:
            raise EmbeddingError(f"Batch embedding failed: {str(e)}") from e

        embeddings = np.asarray(embeddings, dtype=np.float32)
        if embeddings.shape != (len(positions), self.embedding_dim):
            raise EmbeddingError(
                f"Model returned embeddings of shape {embeddings.shape}, "
                f"expected {(len(positions), self.embedding_dim)}"
            )
        result[positions] = embeddings
        return result
