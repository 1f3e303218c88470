"""Base module.

This module belongs to `prd_stream.web.services` in the prd-stream codebase.
"""

from __future__ import annotations


def app_module():
    """Lazy import to avoid circular dependency at module import time."""
    from prd_stream.web import app

    return app
