"""Main module.

This module belongs to `prd_stream` in the prd-stream codebase.
"""

from prd_stream.launch import main


if __name__ == "__main__":
    raise SystemExit(main())
