"""Command that starts the zone management HTTP server."""

from __future__ import annotations

import argparse
import logging
import os
import sys

from flask import Flask

from .api import create_app
from .config import load_config
from .manager import Manager

CONFIG_KEY = "BIND_DNS_CONFIG"

_log = logging.getLogger("bind_dns_api")


def build_app(config_path: str) -> Flask:
    """Load the configuration, prepare the zone directory and build the app.

    The loaded configuration is kept in ``app.config["BIND_DNS_CONFIG"]``.
    """
    cfg = load_config(config_path)
    os.makedirs(cfg.bind.zone_directory, mode=0o755, exist_ok=True)
    app = create_app(Manager(cfg.bind))
    app.config[CONFIG_KEY] = cfg
    return app


def main(argv: list[str] | None = None) -> None:
    """Parse the command line and serve the API until interrupted."""
    parser = argparse.ArgumentParser(description="BIND DNS API server")
    parser.add_argument(
        "-config",
        "--config",
        dest="config",
        default="config.json",
        help="Path to configuration file",
    )
    args = parser.parse_args(argv)

    if not logging.getLogger().handlers:
        logging.basicConfig(level=logging.INFO, format="%(asctime)s %(message)s")

    try:
        app = build_app(args.config)
    except (OSError, ValueError) as exc:
        _log.error("Failed to start: %s", exc)
        sys.exit(1)

    cfg = app.config[CONFIG_KEY]
    addr = f"{cfg.server.host}:{cfg.server.port}"
    _log.info("Starting BIND DNS API server on %s", addr)
    _log.info("Zone directory: %s", cfg.bind.zone_directory)
    _log.info("Configuration: %s", args.config)

    try:
        app.run(host=cfg.server.host, port=cfg.server.port)
    except OSError as exc:
        _log.error("Failed to start server: %s", exc)
        sys.exit(1)