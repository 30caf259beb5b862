class APIError(Exception):
    """Error that is rendered as a JSON ``{"message": ...}`` response."""

    status_code = 400
    default_message = "Bad request"

    def __init__(self, message=None, status_code=None, payload=None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        self.payload = payload

    def to_dict(self):
        body = dict(self.payload or {})
        body["message"] = self.message
        return body


class BadRequest(APIError):
    status_code = 400
    default_message = "Bad request"


class Unauthorized(APIError):
    status_code = 401
    default_message = "Authentication required"


class Forbidden(APIError):
    status_code = 403
    default_message = "Forbidden"


class NotFound(APIError):
    status_code = 404
    default_message = "Not found"


class Conflict(APIError):
    status_code = 409
    default_message = "Conflict"


class ServiceUnavailable(APIError):
    status_code = 503
    default_message = "Service temporarily unavailable"
