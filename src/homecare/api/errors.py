from typing import Optional


class APIError(Exception):
    def __init__(self, code: str, message: str, http_status: int = 400, details: Optional[dict] = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.http_status = http_status
        self.details = details


class BadRequestError(APIError):
    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__("BAD_REQUEST", message, 400, details)


class NotFoundError(APIError):
    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__("NOT_FOUND", message, 404, details)


class ForbiddenError(APIError):
    def __init__(self, message: str = "Not allowed", details: Optional[dict] = None):
        super().__init__("FORBIDDEN", message, 403, details)


# Domain-specific
class RecordNotFoundError(NotFoundError):
    def __init__(self, kind: str, record_id: str):
        super().__init__(f"{kind} not found", {"record_id": record_id})
