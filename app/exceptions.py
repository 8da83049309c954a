"""Errors surfaced to the operator as inline messages."""


class ApiError(RuntimeError):
    """A backend call failed. The message is safe to show to the operator."""

    def __init__(self, message, status_code=None, url=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.url = url


class SessionExpiredError(ApiError):
    """The backend rejected the bearer token (HTTP 401)."""

    def __init__(self, url=None):
        super().__init__(
            "Your session has expired. Please log in again.",
            status_code=401,
            url=url,
        )


class EntityNotFoundError(LookupError):
    """A locally referenced entity (draft, product, image, option group) is gone."""

    def __init__(self, entity_type, identifier):
        self.entity_type = entity_type
        self.identifier = identifier
        super().__init__(f"{entity_type} {identifier} not found")
