# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 BLUEDA Team

"""
Command line entry point.

    blueda <config.yaml> [--log-level LEVEL]

Runs the configured method until the model has finished. Exit code 0 on
success, 1 on a missing argument or any blueda error.
"""

import argparse
import sys
from pathlib import Path
from typing import Dict, Optional, Sequence

from blueda.core.config.models import BluedaConfig
from blueda.core.exceptions import BLUEDAError
from blueda.core.logging_manager import LoggingManager
from blueda.core.registries import R

USAGE = "Usage:\n  blueda [configuration file]"


def build_parser() -> argparse.ArgumentParser:
    from blueda import __version__

    parser = argparse.ArgumentParser(
        prog='blueda',
        description='Run a forward model or a BLUE-based data assimilation cycle.',
    )
    parser.add_argument('config', nargs='?', help='YAML configuration file')
    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
        help='Override logging.level from the configuration file',
    )
    parser.add_argument('--version', action='version', version=f'blueda {__version__}')
    return parser


def build_driver(config: BluedaConfig):
    """Instantiate the method named in ``config``."""
    driver_cls = R.lookup('methods', config.method)
    return driver_cls(config)


def run(config_path: Path, overrides: Optional[Dict[str, str]] = None) -> None:
    """
    Load ``config_path``, configure logging and run the driver to completion.

    Raises:
        BLUEDAError: On any configuration, numerical or I/O failure
    """
    config = BluedaConfig.from_file(config_path, overrides=overrides)
    logging_manager = LoggingManager(config.logging, base_dir=config.base_dir)
    logger = logging_manager.setup()
    try:
        logger.info(f"Configuration: {config_path}")
        driver = build_driver(config)
        driver.run()
    except BLUEDAError as e:
        logger.error(f"{type(e).__name__}: {e}")
        raise
    finally:
        logging_manager.teardown()


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.config is None:
        print(USAGE, file=sys.stderr)
        return 1

    overrides = {'logging.level': args.log_level} if args.log_level else None
    try:
        run(Path(args.config), overrides)
    except BLUEDAError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
