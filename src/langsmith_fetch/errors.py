class LangSmithError(Exception):
    """Base class for every error raised by langsmith_fetch."""


class ConfigError(LangSmithError):
    """Missing or invalid configuration (credential, project scope)."""


class UsageError(LangSmithError):
    """Invalid caller input, rejected before any request is sent."""


class ApiError(LangSmithError):
    def __init__(self, message: str, status_code: int, response_body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.response_body = response_body
