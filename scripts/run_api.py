#!/usr/bin/env python3
"""Run the FastAPI server for the Pet Story Generator."""

import logging
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

import uvicorn

from petstory.config import Settings
from petstory.core.errors import ConfigurationError

logger = logging.getLogger(__name__)


def main():
    """Run the API server. Exits with status 1 on missing configuration."""
    try:
        settings = Settings.from_env()
    except ConfigurationError as e:
        logging.basicConfig(level=logging.ERROR)
        logger.error(str(e))
        sys.exit(1)

    uvicorn.run(
        "petstory.api.main:app",
        host="0.0.0.0",
        port=settings.port,
        reload=settings.is_development,
    )


if __name__ == "__main__":
    main()
