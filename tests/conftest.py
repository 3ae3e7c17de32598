"""Root pytest configuration for shared markers and environment."""

import os

# The API module builds its app at import time and refuses to start
# without an OpenAI key.
os.environ.setdefault("OPENAI_API_KEY", "test-openai-key")


def pytest_configure(config):
    """Register custom markers used across test directories."""
    config.addinivalue_line(
        "markers", "e2e: end-to-end request through the full app with faked upstreams"
    )
