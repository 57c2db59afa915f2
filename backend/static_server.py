"""Static file serving for production deployment."""

import logging
import os
from pathlib import Path

from fastapi import FastAPI

from config import StaticConfig, load_static_config
from middleware import PrecompressedStaticMiddleware

logger = logging.getLogger(__name__)

# Used when STATIC_ROOT is not set
_default_root = Path(__file__).parent / "static"


def setup_static_serving(app: FastAPI, config: StaticConfig | None = None) -> None:
    """Serve static documents in front of the app if the static root exists."""
    if config is None:
        config = load_static_config({"STATIC_ROOT": str(_default_root), **os.environ})

    if config.filesystem is None and not Path(config.root).is_dir():
        logger.warning("Static root %s does not exist; static serving disabled", config.root)
        return

    app.add_middleware(PrecompressedStaticMiddleware, config=config)
