"""
Custom exceptions for contextchat.

All contextchat-specific errors inherit from ContextChatError.
"""

__all__ = [
    "ContextChatError",
    # Config errors
    "ConfigError",
    "ConfigNotFoundError",
    "ConfigValidationError",
    # Context errors
    "ContextError",
    "ContextBudgetError",
    "InvalidRetentionPercentageError",
    "MessageTooLargeError",
    # Chat input errors
    "ChatInputError",
    "EmptyMessageError",
    "MessageTooLongError",
    "ConversationBusyError",
    # Transport errors
    "TransportError",
    "RequestTimeoutError",
    "ConnectivityError",
    "PayloadError",
    "ImageProcessingError",
    # Storage errors
    "StorageError",
]


class ContextChatError(Exception):
    """Base exception for all contextchat errors."""

    def __init__(self, message: str, details: str | None = None):
        self.message = message
        self.details = details
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message}\n  Details: {self.details}"
        return self.message


# Configuration Errors

class ConfigError(ContextChatError):
    """Base class for configuration errors."""
    pass


class ConfigNotFoundError(ConfigError):
    """Raised when config file is not found."""

    def __init__(self, path: str):
        super().__init__(
            f"Configuration file not found: {path}",
            details="Run 'contextchat --init' to initialize configuration"
        )
        self.path = path


class ConfigValidationError(ConfigError):
    """Raised when config validation fails."""

    def __init__(self, message: str, field: str | None = None):
        details = f"Field: {field}" if field else None
        super().__init__(f"Configuration validation error: {message}", details)
        self.field = field


# Context Errors

class ContextError(ContextChatError):
    """Base class for context window errors."""
    pass


class ContextBudgetError(ContextError):
    """Raised when the system prompt alone does not fit the safe budget."""

    def __init__(self, base_prompt_tokens: int, safe_limit: int):
        super().__init__(
            f"System prompt needs {base_prompt_tokens} tokens, "
            f"safe context limit is {safe_limit}",
            details="Shorten the system prompt or raise context.max_context_tokens"
        )
        self.base_prompt_tokens = base_prompt_tokens
        self.safe_limit = safe_limit


class InvalidRetentionPercentageError(ContextError):
    """Raised when a manual clear percentage is outside [0, 100]."""

    def __init__(self, percent: object):
        super().__init__(
            f"Invalid clear percentage: {percent!r}",
            details="Expected a number between 0 and 100"
        )
        self.percent = percent


class MessageTooLargeError(ContextError):
    """Raised when a new message cannot fit the context window on its own."""

    def __init__(self, message_tokens: int, available_tokens: int):
        super().__init__(
            f"Message needs {message_tokens} tokens but only "
            f"{available_tokens} are available",
            details="Send a shorter message or drop the image"
        )
        self.message_tokens = message_tokens
        self.available_tokens = available_tokens


# Chat Input Errors

class ChatInputError(ContextChatError):
    """Base class for rejected user input."""
    pass


class EmptyMessageError(ChatInputError):
    """Raised when a turn carries neither text nor an image."""

    def __init__(self):
        super().__init__("Provide a message or an image")


class MessageTooLongError(ChatInputError):
    """Raised when message text exceeds the configured maximum length."""

    def __init__(self, length: int, max_length: int):
        super().__init__(
            f"Message must be at most {max_length} characters",
            details=f"Got {length} characters"
        )
        self.length = length
        self.max_length = max_length


class ConversationBusyError(ChatInputError):
    """Raised when a turn is sent while the previous reply is still streaming."""

    def __init__(self):
        super().__init__("Wait for the previous reply to finish")


# Transport Errors

class TransportError(ContextChatError):
    """Base class for errors reported by the chat-completion transport."""

    user_message = "Could not process the reply from the model. Please try again."

    def __init__(self, message: str, details: str | None = None):
        super().__init__(message, details)


class RequestTimeoutError(TransportError):
    """Raised when the upstream request exceeds its deadline."""

    user_message = "The request took too long. Please try again."

    def __init__(self, timeout: float, details: str | None = None):
        super().__init__(f"Request timed out after {timeout:g} seconds", details)
        self.timeout = timeout


class ConnectivityError(TransportError):
    """Raised when the upstream service cannot be reached."""

    user_message = "Connection error. Check your network and try again."


class PayloadError(TransportError):
    """Raised when the upstream service rejects the request payload."""

    user_message = (
        "The request could not be processed. "
        "Try a smaller image or a different format."
    )


class ImageProcessingError(PayloadError):
    """Raised when an image attachment cannot be read or encoded."""

    def __init__(self, source: str, reason: str | None = None):
        super().__init__(f"Failed to process image: {source}", details=reason)
        self.source = source
        self.reason = reason


# Storage Errors

class StorageError(ContextChatError):
    """Raised when the history store cannot be read or written."""

    def __init__(self, operation: str, reason: str | None = None):
        super().__init__(f"History storage failed: {operation}", details=reason)
        self.operation = operation
        self.reason = reason
