"""API package for the backend service.

This package contains the API endpoints, middleware and utilities for the
backend service. Services raise the exceptions of ``middleware.exceptions``,
so the package itself stays free of imports; use ``backend.src.api.core``.
"""
