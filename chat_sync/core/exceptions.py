"""Conversation sync exception classes."""


class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, code: str) -> None:
        self.message = message
        self.code = code
        super().__init__(message)


# --- Lookup ---


class ChatNotFoundError(AppException):
    """Referenced chat does not exist."""

    def __init__(self, chat_id: str) -> None:
        self.chat_id = chat_id
        super().__init__(
            message=f"Chat not found: {chat_id}",
            code="CHAT_NOT_FOUND",
        )


# --- Collaborator failures ---


class StorageError(AppException):
    """Persistence or pagination transport failure."""

    def __init__(self, message: str = "Storage operation failed") -> None:
        super().__init__(message=message, code="STORAGE_ERROR")


class GenerationError(AppException):
    """Reply generation failed or produced nothing usable."""

    def __init__(self, message: str = "Response generation failed") -> None:
        super().__init__(message=message, code="GENERATION_ERROR")


# --- Engine state ---


class InvalidStateError(AppException):
    """Operation invoked outside the state it requires."""

    def __init__(self, message: str = "Operation not allowed in current state") -> None:
        super().__init__(message=message, code="INVALID_STATE")


class BusyError(AppException):
    """A conflicting send is already in flight for the chat."""

    def __init__(self) -> None:
        super().__init__(
            message="A message is already being sent for this chat",
            code="BUSY",
        )
