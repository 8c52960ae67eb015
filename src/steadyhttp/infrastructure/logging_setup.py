"""Logging setup for applications using steadyhttp"""

import logging


def setup_logging(verbose: bool = False) -> None:
    """Configure the root logger (DEBUG when verbose, INFO otherwise)"""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )
    logging.getLogger("steadyhttp").setLevel(level)
