from typing import Optional


class ValveSearchError(Exception):
    pass


class GraphError(ValveSearchError, ValueError):
    """Raised when the valve description cannot be turned into a graph."""

    def __init__(
        self, message: str, line_no: Optional[int] = None, line: Optional[str] = None
    ):
        self.reason = message
        self.line_no = line_no
        self.line = line
        if line_no is not None:
            message = f"line {line_no}: {message}: {line!r}"
        super().__init__(message)


class IllegalActionError(ValveSearchError):
    pass
