"""Error kinds raised by the matching core.

Every operation raises one of these synchronously at the point the problem is
detected. Views translate ``status_code`` into the HTTP response.
"""


class MatchingError(Exception):
    status_code = 400
    code = "error"

    def __init__(self, message: str = ""):
        super().__init__(message or self.default_message())
        self.message = message or self.default_message()

    @classmethod
    def default_message(cls) -> str:
        return cls.__name__

    def as_dict(self) -> dict:
        return {"error": self.code, "message": self.message}


class Unauthorized(MatchingError):
    status_code = 403
    code = "unauthorized"


class NotFound(MatchingError):
    status_code = 404
    code = "not_found"


class AlreadyRecorded(MatchingError):
    status_code = 409
    code = "already_recorded"


class InvalidState(MatchingError):
    status_code = 409
    code = "invalid_state"


class NotEligible(MatchingError):
    status_code = 409
    code = "not_eligible"


class InvalidInput(MatchingError):
    status_code = 400
    code = "invalid_input"

    def __init__(self, message: str = "", field: str = ""):
        super().__init__(message)
        self.field = field

    def as_dict(self) -> dict:
        payload = super().as_dict()
        if self.field:
            payload["field"] = self.field
        return payload
