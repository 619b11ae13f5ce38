"""API routers."""

from employee_api.src.routers.employees import router as employees_router

__all__ = ["employees_router"]
