# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

#src/deploy_activate/logging/log.py

from __future__ import annotations

import logging
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
import uuid


class LoggerType(str, Enum):
    ACTIVATE = "activate"
    WAIT = "wait"
    REVOKE = "revoke"


def init_logging(
    *,
    logger_type: LoggerType,
    log_dir: Path | None = None,
    debug_logs: bool = False,
    name: str = "deploy_activate",
) -> tuple[logging.Logger, str, Path | None]:
    """
    Initializes:
      - console output on stderr, tagged with the subcommand
      - when log_dir is given, a full DEBUG trace file per run
      - returns run_id so observers can reuse it
    """
    run_id = str(uuid.uuid4())

    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)
    logger.handlers.clear()
    logger.propagate = False

    formatter = logging.Formatter(
        f"%(asctime)s | %(levelname)-7s | [{logger_type.value}] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # Console = INFO by default, DEBUG when --debug-logs is passed
    ch = logging.StreamHandler()
    ch.setLevel(logging.DEBUG if debug_logs else logging.INFO)
    ch.setFormatter(formatter)
    logger.addHandler(ch)

    log_path = None
    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        ts = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
        log_path = log_dir / f"{logger_type.value}-{ts}-{run_id}.log"

        # File = FULL TRACE
        fh = logging.FileHandler(log_path)
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(formatter)
        logger.addHandler(fh)

    logger.debug("run_id=%s", run_id)
    if log_path is not None:
        logger.debug("log_file=%s", log_path)

    return logger, run_id, log_path
