"""
API routes module.

FastAPI routers for all HTTP endpoints, assembled by `main.create_app`.
"""
