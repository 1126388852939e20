"""API Layer — FastAPI routers and global error handlers (the outermost shell)."""
