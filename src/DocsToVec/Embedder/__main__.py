"""Allow ``python -m DocsToVec.Embedder`` to run the CLI."""

from .cli import main

if __name__ == "__main__":
    main()
