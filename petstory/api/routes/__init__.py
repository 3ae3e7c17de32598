"""HTTP routes for the Pet Story API."""

from . import health, pets, stories

__all__ = ["health", "pets", "stories"]
