"""DocsToVec: resumable text-to-embedding tooling.

The :mod:`DocsToVec.Embedder` package contains the embedding pipeline, the
checkpoint store that makes long jobs resumable, and the ``docstovec`` CLI.
"""

__version__ = "1.1.0"

__all__ = ["__version__"]
