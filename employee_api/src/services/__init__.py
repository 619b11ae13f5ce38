"""Business logic services.

This package contains service classes that orchestrate operations across
repositories and provide high-level functionality to API endpoints.
"""

from employee_api.src.services.employee_service import EmployeeService

__all__ = ["EmployeeService"]
