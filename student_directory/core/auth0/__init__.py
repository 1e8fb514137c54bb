"""Auth0 Management API client library for student accounts.

Architecture:
- transport.py: Transport abstraction and the requests-backed implementation
- client.py: Client-credentials token exchange and authenticated calls
- users.py: Student lifecycle operations (list, count, create, get, reset, delete)
- models.py: Student value objects
- exceptions.py: Typed exceptions carrying the remote error fields

Usage:
    # Using the service class
    from student_directory.core.auth0 import Auth0Client, StudentService

    client = Auth0Client("tenant.eu.auth0.com", "client-id", "client-secret")
    service = StudentService(client)
    students = await service.get_students("class-7b")

    # Using standalone functions configured from the environment
    from student_directory.core.auth0 import create_student

    student = await create_student("class-7b", "alice")
"""
from .client import (
    Auth0Client,
    create_client_from_settings,
    raise_for_error,
)
from .exceptions import (
    Auth0Error,
    Auth0APIError,
    UnauthorizedError,
    InsufficientPermissionsError,
    UserNotFoundError,
    UserAlreadyExistsError,
    RateLimitError,
    TransportError,
)
from .models import Student, StudentCredentials
from .transport import Transport, TransportResponse, RequestsTransport
from .users import (
    StudentService,
    generate_password,
    get_students,
    count_students,
    create_student,
    get_student,
    reset_student_password,
    delete_student,
)

__all__ = [
    # Client
    "Auth0Client",
    "create_client_from_settings",
    "raise_for_error",

    # Transport
    "Transport",
    "TransportResponse",
    "RequestsTransport",

    # Exceptions
    "Auth0Error",
    "Auth0APIError",
    "UnauthorizedError",
    "InsufficientPermissionsError",
    "UserNotFoundError",
    "UserAlreadyExistsError",
    "RateLimitError",
    "TransportError",

    # Models
    "Student",
    "StudentCredentials",

    # Service
    "StudentService",
    "generate_password",

    # Student functions
    "get_students",
    "count_students",
    "create_student",
    "get_student",
    "reset_student_password",
    "delete_student",
]
