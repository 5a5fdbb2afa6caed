"""
Users feature: DTOs, the CRUD service and the /users routes.
"""

from .schemas import CreateUserDto, UpdateUserDto, UserOut, PaginatedUsers
from .service import BaseService, UserService
from .routes import router

__all__ = [
    "CreateUserDto",
    "UpdateUserDto",
    "UserOut",
    "PaginatedUsers",
    "BaseService",
    "UserService",
    "router",
]
