"""HTTP API layer: FastAPI app, routes, services and models."""
