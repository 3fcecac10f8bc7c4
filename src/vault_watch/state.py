"""Per-invocation state shared by the pipeline and the cache."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .settings import WatchSettings


@dataclass
class AppState:
    """Resolved settings plus the logger pipeline stages report through.

    One instance is built by the CLI or by ``get_default_cache`` and handed to
    every ``run_pipeline`` call made by that cache.
    """

    settings: WatchSettings
    logger: logging.Logger
