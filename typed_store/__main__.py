"""Allow python -m typed_store to run the CLI."""
from __future__ import annotations

from typed_store.cli.main import main

if __name__ == "__main__":
    raise SystemExit(main())
