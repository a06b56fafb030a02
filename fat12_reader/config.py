#!/usr/bin/env python3

# Copyright (c) 2026 Stephen P Smith
# MIT License

"""
Reader configuration and logging setup
"""

import logging
from dataclasses import dataclass
from typing import Optional

LOG_FORMAT = '%(asctime)s - %(filename)s:%(lineno)d - %(levelname)s - %(message)s'

# -v count -> log level
VERBOSITY_LEVELS = {
    0: logging.WARNING,
    1: logging.INFO,
    2: logging.DEBUG,
}


@dataclass
class ReaderConfig:
    """
    Options controlling how an image is read.

    The defaults reproduce a plain reader that trusts the image: no boot sector
    validation and no filtering of unused directory slots during lookup.
    """
    strict_boot_sector: bool = False
    skip_free_entries: bool = False
    detect_chain_loops: bool = True
    log_level: int = logging.WARNING
    log_file: Optional[str] = None

    @classmethod
    def from_args(cls, args) -> 'ReaderConfig':
        """Build a config from parsed command line arguments"""
        verbosity = min(getattr(args, 'verbose', 0) or 0, max(VERBOSITY_LEVELS))
        return cls(
            strict_boot_sector=getattr(args, 'strict', False),
            skip_free_entries=getattr(args, 'skip_deleted', False),
            detect_chain_loops=not getattr(args, 'no_loop_check', False),
            log_level=VERBOSITY_LEVELS[verbosity],
            log_file=getattr(args, 'log_file', None),
        )


def setup_logging(config: ReaderConfig) -> logging.Logger:
    """Configure application-wide logging"""
    handlers = [logging.StreamHandler()]
    if config.log_file:
        handlers.append(logging.FileHandler(config.log_file, mode='w'))

    logging.basicConfig(
        level=config.log_level,
        format=LOG_FORMAT,
        handlers=handlers,
        force=True
    )
    return logging.getLogger("fat12_reader")
