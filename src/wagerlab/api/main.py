"""CLI entrypoint to run the wagerlab FastAPI server."""

from __future__ import annotations

import logging
import os

import uvicorn

from wagerlab.config import get_settings


def main() -> None:
    logging.basicConfig(
        level=get_settings().log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    port = int(os.getenv("PORT", "8000"))
    uvicorn.run("wagerlab.api.server:app", host="0.0.0.0", port=port, reload=False)


if __name__ == "__main__":  # pragma: no cover
    main()
