"""HTTP API routers for Smart Checker."""
