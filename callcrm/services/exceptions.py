# callcrm/services/exceptions.py
"""
Service-level errors.

They extend the builtin lookup/value/permission errors so routers can keep
mapping ``LookupError`` to 404 and ``ValueError`` to 400; ``ConflictError``
is caught first and becomes 409.
"""


class NotFoundError(LookupError):
    pass


class ConflictError(ValueError):
    pass


class DuplicateLeadError(ConflictError):
    pass


class AlreadyConvertedError(ConflictError):
    pass


class BadRequestError(ValueError):
    pass


class ForbiddenError(PermissionError):
    pass
