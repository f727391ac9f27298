"""Command line launcher for the knife fight sandbox server."""

from __future__ import annotations

import argparse
import logging
import os
from pathlib import Path

from knifefight.plugin.config import load_settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    settings = load_settings()
    parser = argparse.ArgumentParser(description="Knife fight sandbox server")
    parser.add_argument("--host", default=settings.host)
    parser.add_argument("--port", type=int, default=settings.port)
    parser.add_argument("--config", type=Path, default=settings.config_path or Path("config.json"))
    parser.add_argument(
        "--log-level",
        default=settings.log_level,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        type=str.upper,
    )
    return parser.parse_args(argv)


def configure_logging(level: str) -> None:
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    configure_logging(args.log_level)
    # knifefight.plugin.api builds its app from the environment at import time.
    os.environ["KNIFEFIGHT_CONFIG_PATH"] = str(args.config)

    import uvicorn

    uvicorn.run(
        "knifefight.plugin.api:app",
        host=args.host,
        port=args.port,
        log_level=args.log_level.lower(),
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
