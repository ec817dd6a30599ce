"""
Guardian API Module

FastAPI application, dependency injection, middleware and routes.
"""
