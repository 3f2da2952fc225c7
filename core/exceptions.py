from typing import Any, Dict, Optional

class BizError(Exception):
    """
    Generic business error
    """
    def __init__(
        self,
        message: str,
        code: int = 400,
        payload: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.payload = payload or {}
        super().__init__(self.message)

class InvalidInputError(BizError):
    """
    Rejected request input (missing / non-numeric coordinates, bad radius)
    """
    def __init__(self, message: str, field: str = ""):
        super().__init__(
            message=message,
            code=400,
            payload={"field": field} if field else None,
        )

class TransientFetchError(Exception):
    """
    One failed Overpass attempt: network error, non-200 status, bad JSON or timeout.
    Retried by the fetcher, never surfaced on its own.
    """
    def __init__(self, message: str, endpoint: str = "", status_code: Optional[int] = None):
        self.endpoint = endpoint
        self.status_code = status_code
        super().__init__(message)

class FetchExhaustedError(BizError):
    """
    Every attempt of one Overpass query failed
    """
    def __init__(self, message: str, query_kind: str = "", attempts: int = 0):
        self.query_kind = query_kind
        self.attempts = attempts
        super().__init__(
            message=message,
            code=500,
            payload={"query_kind": query_kind, "attempts": attempts},
        )
