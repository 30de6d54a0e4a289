class ApiError(Exception):
    """
    Base class for errors that map directly onto an HTTP response.

    Subclasses set ``status`` and decide whether the body is JSON or plain text.
    """

    status = 500
    text_body = False

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.message = message
        if status is not None:
            self.status = status

    def to_response(self):
        return {"message": self.message}


class NotFound(ApiError):
    status = 404
    text_body = True


class Conflict(ApiError):
    status = 409
    text_body = True


class UnsupportedMediaType(ApiError):
    status = 415


class Unauthorized(ApiError):
    status = 401


class ValidationFailed(ApiError):
    """
    Raised when one or more fields of a submitted document are invalid.

    Args:
        entity (str): Entity name used in the summary message.
        errors (dict): Per-field details keyed by field path.
    """

    status = 422

    def __init__(self, entity: str, errors: dict):
        super().__init__(f"{entity} validation failed")
        self.entity = entity
        self.errors = errors

    def to_response(self):
        return {"message": self.message, "errors": self.errors}


def build_field_error(path: str, kind: str, message: str, value=None):
    """
    Build the detail entry for one invalid field.

    Args:
        path (str): Field name.
        kind (str): Failed constraint (``required``, ``minlength``, ``exists``...).
        message (str): Human readable explanation.
        value (Any): Offending value, omitted when None.

    Returns:
        dict: Field error entry.
    """
    entry = {"kind": kind, "message": message, "path": path}
    if value is not None:
        entry["value"] = value
    return entry
