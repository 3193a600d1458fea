"""Caption API: FastAPI app, routers and services."""
