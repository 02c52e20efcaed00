"""HTTP server package: FastAPI application, routers and middleware."""
