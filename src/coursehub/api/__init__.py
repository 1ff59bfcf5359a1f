"""REST API for CourseHub."""

from coursehub.api.app import app, create_app, register_exception_handlers
from coursehub.api.models import (
    CourseCreate,
    CourseResponse,
    CourseUpdate,
    MessageResponse,
)

__all__ = [
    "CourseCreate",
    "CourseResponse",
    "CourseUpdate",
    "MessageResponse",
    "app",
    "create_app",
    "register_exception_handlers",
]
