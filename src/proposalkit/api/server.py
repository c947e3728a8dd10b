"""
ASGI entry point for the proposalkit API.

This module exposes the `app` object required by ASGI servers (Uvicorn).
It loads environment variables from `.env` first so that settings read at
import time (store directory, autosave tuning) see them.

Usage
-----
Run via the module entry point:
    $ python -m proposalkit.api.server

Or via uvicorn directly:
    $ uvicorn proposalkit.api.server:app --reload
"""

from pathlib import Path

import uvicorn
from dotenv import load_dotenv

# --------------------------------------------------------------------------- #
# Environment Setup
# --------------------------------------------------------------------------- #

load_dotenv(dotenv_path=Path(".env"))

from proposalkit.api.app import create_app  # noqa: E402
from proposalkit.core.settings import load_settings  # noqa: E402

# Factory invocation
app = create_app()


def main() -> None:
    """Run the API server locally for development."""
    settings = load_settings()
    print(f"{'[ proposalkit ]':=^60}")
    print(f"{'environment':<20} : {settings.environment}")
    print(f"{'store_dir':<20} : {settings.store_dir}")
    print(f"{'autosave':<20} : {'on' if settings.autosave_enabled else 'off'}")
    print(f"{'=' * 60}\n")

    uvicorn.run(
        "proposalkit.api.server:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.is_dev,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
