"""Error type mapped onto the ``{error, detail}`` JSON envelope."""

from __future__ import annotations


class APIError(Exception):
    """Raised by route handlers; rendered by the app's exception handler."""

    def __init__(self, status_code: int, error: str, detail: str) -> None:
        super().__init__(f"{error}: {detail}")
        self.status_code = status_code
        self.error = error
        self.detail = detail
