"""
QueryGate Custom Exceptions
"""


class QueryGateError(Exception):
    """Base exception for all QueryGate errors"""

    pass


class DatabaseConnectionError(QueryGateError):
    """Pool unavailable or exhausted, network or authentication failure"""

    pass


class QueryExecutionError(QueryGateError):
    """Database-reported fault for an already-validated statement"""

    def __init__(self, message: str, code: int | None = None):
        self.code = code
        super().__init__(message)


class ProtocolError(QueryGateError):
    """Malformed or unroutable request at the session/transport boundary"""

    def __init__(self, message: str, code: int = -32000):
        self.message = message
        self.code = code
        super().__init__(message)


class LLMError(QueryGateError):
    """Language model call failed"""

    pass
