"""Error taxonomy shared by the resolver, gate, engine and repositories.

Every error carries a ``kind`` (stable, machine readable) and a human
readable ``message``. ``status_code`` is only used by the HTTP layer.
"""


class ServiceError(Exception):
    kind = "ServiceError"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"kind": self.kind, "message": self.message}


class MissingCredential(ServiceError):
    kind = "MissingCredential"
    status_code = 401

    def __init__(self, message: str = "No authentication token, access denied"):
        super().__init__(message)


class InvalidCredential(ServiceError):
    kind = "InvalidCredential"
    status_code = 401

    def __init__(self, message: str = "Token verification failed, authorization denied"):
        super().__init__(message)


class Forbidden(ServiceError):
    kind = "Forbidden"
    status_code = 403

    def __init__(self, message: str = "Access denied: insufficient permissions"):
        super().__init__(message)


class ValidationError(ServiceError):
    kind = "ValidationError"
    status_code = 400


class NotFound(ServiceError):
    kind = "NotFound"
    status_code = 404


class IllegalTransition(ServiceError):
    kind = "IllegalTransition"
    status_code = 409


class Conflict(ServiceError):
    kind = "Conflict"
    status_code = 409


class StorageUnavailable(ServiceError):
    kind = "StorageUnavailable"
    status_code = 503

    def __init__(self, message: str = "Storage is unavailable, try again later"):
        super().__init__(message)
