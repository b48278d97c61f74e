class ChatError(Exception):
    status_code = 500
    detail = "Internal error"

    def __init__(self, detail: str | None = None):
        super().__init__(detail or self.detail)
        self.detail = detail or self.detail


class InvalidInput(ChatError):
    status_code = 422
    detail = "Invalid input"


class InvalidIdentifier(InvalidInput):
    detail = "Invalid participant name"


class Conflict(ChatError):
    status_code = 409
    detail = "Name already in use"


class Unauthorized(ChatError):
    status_code = 401
    detail = "Not allowed"


class NotFound(ChatError):
    status_code = 404
    detail = "Not found"


class StoreUnavailable(ChatError):
    status_code = 503
    detail = "Store unavailable"
