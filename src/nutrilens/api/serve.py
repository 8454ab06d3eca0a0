"""`nutrilens-serve`: run the HTTP API under uvicorn."""

from __future__ import annotations

from typing import Annotated, Optional

import typer
import uvicorn

from nutrilens.config import load_settings


def main(
    host: Annotated[str, typer.Option(help="Interface to bind")] = "127.0.0.1",
    port: Annotated[int, typer.Option(help="TCP port")] = 8000,
    reload: Annotated[bool, typer.Option(help="Restart on code changes (development only)")] = False,
    log_level: Annotated[Optional[str], typer.Option(help="Server log level; defaults to NUTRILENS_LOG_LEVEL")] = None,
) -> None:
    """Serve ingredient research and product lookups over HTTP."""

    level = (log_level or load_settings().log_level).lower()
    # Each worker process builds its own services.
    uvicorn.run(
        "nutrilens.api.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_level=level,
    )


def cli() -> None:
    typer.run(main)


if __name__ == "__main__":
    cli()
