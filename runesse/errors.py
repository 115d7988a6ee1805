"""
Error taxonomy shared by the services and the HTTP layer.
Every error renders as {"ok": false, "error": message} with its status code.
"""


class RunesseError(Exception):
    status_code = 500

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self):
        return {"ok": False, "error": self.message}


class ValidationError(RunesseError):
    status_code = 400


class UnauthorizedError(RunesseError):
    status_code = 401


class ForbiddenError(RunesseError):
    status_code = 403


class UntrustedDeviceError(ForbiddenError):
    def __init__(self, message="Admin device is not trusted"):
        super().__init__(message)


class NotFoundError(RunesseError):
    status_code = 404

    def __init__(self, message="Request not found"):
        super().__init__(message)


class InvalidStateError(RunesseError):
    status_code = 400


class ConflictError(RunesseError):
    status_code = 409


class StoreError(RunesseError):
    # Callers never see the underlying driver message
    status_code = 500

    def __init__(self, message="Internal server error"):
        super().__init__(message)
