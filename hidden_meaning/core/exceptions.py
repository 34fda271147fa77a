# hidden_meaning/core/exceptions.py


class CollaboratorError(Exception):
    """An external service (LLM, image generator) failed or returned something unusable."""

    def __init__(self, message: str, retryable: bool = True):
        super().__init__(message)
        self.message = message
        self.retryable = retryable


class TextGenerationError(CollaboratorError):
    pass


class GenerationError(CollaboratorError):
    """The prompt/meaning generator returned a malformed or empty payload."""


class ImageGenerationError(CollaboratorError):
    """The image generator returned no usable image URL."""
