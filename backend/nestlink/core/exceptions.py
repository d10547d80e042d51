"""
Domain errors raised by the service layer.

Routers translate them into HTTP responses: NotFoundError -> 404,
PermissionDeniedError -> 403, ConflictError -> 409. Invalid input keeps
using plain ValueError (-> 400).
"""


class NotFoundError(LookupError):
    pass


class PermissionDeniedError(Exception):
    pass


class ConflictError(ValueError):
    pass
