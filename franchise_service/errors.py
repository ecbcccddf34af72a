class ServiceError(Exception):
    """Base for errors surfaced to the caller as a structured response."""

    status_code = 500

    def __init__(self, message):
        super().__init__(message)
        self.message = message


class ValidationError(ServiceError):
    status_code = 400


class NotFound(ServiceError):
    status_code = 404


class RoleMismatch(ServiceError):
    status_code = 400


class Forbidden(ServiceError):
    status_code = 403


class Conflict(ServiceError):
    status_code = 409
