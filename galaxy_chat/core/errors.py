"""Domain exceptions raised by the service layer.

Routes never catch these themselves; the handlers registered in
``galaxy_chat.main`` turn them into ``{"error": ...}`` responses.
"""


class ChatError(Exception):
    """Base class for service errors."""

    status_code = 500

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message)
        self.message = message


class ValidationFailed(ChatError):
    """Request content failed validation; nothing was written."""

    status_code = 400


class NotFoundError(ChatError):
    """Resource is missing or not owned by the caller."""

    status_code = 404


class GenerationFailed(ChatError):
    """Assistant reply could not be finalized."""

    status_code = 500
