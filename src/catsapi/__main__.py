# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Cats API entrypoint.

Run with:
  python -m catsapi
"""

import logging
import os

import uvicorn

from catsapi.config import Settings


def main() -> None:
    settings = Settings.from_env()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    host = os.getenv("CATS_HOST", "0.0.0.0")
    port = int(os.getenv("CATS_PORT", "8000"))
    reload = os.getenv("CATS_RELOAD", "false").lower() in {"1", "true", "yes", "y"}
    uvicorn.run("catsapi.app:create_app", factory=True, host=host, port=port, reload=reload)


if __name__ == "__main__":
    main()
