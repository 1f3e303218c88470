"""Application launcher for prd-stream."""

from __future__ import annotations

import os
import socket


def _pick_available_port(host: str, base_port: int, tries: int = 20) -> int:
    """Find the first bindable port starting at `base_port`."""
    for i in range(tries):
        port = base_port + i
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
            sock.settimeout(0.2)
            try:
                sock.bind((host, port))
                return port
            except OSError:
                continue
    return base_port


def main() -> int:
    """Serve the editor API with uvicorn."""
    host = os.environ.get("PRD_STREAM_HOST", "127.0.0.1")
    port = int(os.environ.get("PRD_STREAM_PORT", "8765"))
    port = _pick_available_port(host, port)

    import uvicorn

    uvicorn.run("prd_stream.web.app:app", host=host, port=port, reload=False)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
