# Copyright (c) TokenPulse.
# SPDX-License-Identifier: MIT
"""Console entry point: ``python -m tokenpulse_api`` / ``tokenpulse-api``."""

from __future__ import annotations

import os


def main() -> None:
    """Serve the application with uvicorn."""
    import uvicorn

    uvicorn.run(
        "tokenpulse_api.main:create_app",
        factory=True,
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", "8080")),
    )


if __name__ == "__main__":  # pragma: no cover
    main()
