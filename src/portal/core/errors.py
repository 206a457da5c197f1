"""Base exception for business rule failures."""


class RuleViolation(Exception):
    """Raised when a business rule rejects an operation.

    ``detail`` is the user-facing message returned by the API and
    ``status_code`` the HTTP status it maps to.
    """

    def __init__(self, detail: str, status_code: int = 400) -> None:
        super().__init__(detail)
        self.detail = detail
        self.status_code = status_code
