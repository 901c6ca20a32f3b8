"""Custom exception classes."""


class RecipeAIException(Exception):
    """Base exception for the recipe generation service."""

    pass


class ValidationError(RecipeAIException):
    """Raised when input validation fails."""

    pass


class ImageProcessingError(RecipeAIException):
    """Raised when an uploaded image cannot be used."""

    pass


class ModelServiceError(RecipeAIException):
    """Raised by a model client when a single completion call fails."""

    pass


class ModelConnectionError(RecipeAIException):
    """Raised when the model endpoint cannot be reached at all."""

    pass


class GenerationError(RecipeAIException):
    """Raised when recipe generation fails after all attempts."""

    pass


class ModelRateLimitError(GenerationError):
    """Raised when the upstream provider rejected the call with a 429."""

    pass


class GenerationCancelled(RecipeAIException):
    """Raised when the caller cancelled an in-flight generation."""

    pass
