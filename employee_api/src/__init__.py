"""FastAPI service exposing CRUD operations over employees.

The same request handling runs against an in-memory store, MongoDB or
PostgreSQL; the backend is chosen once at startup from configuration.
"""

__version__ = "1.0.0"
