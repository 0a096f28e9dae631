from typing import Optional


class HeritageFlowError(Exception):
    """Base class for everything this package raises on purpose."""


class ProviderError(HeritageFlowError):
    """The remote generative service answered with an HTTP error."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class GenerationError(HeritageFlowError):
    """Structured slide content could not be produced for a topic."""


class ImageGenerationError(HeritageFlowError):
    """A slide image could not be produced.

    Never leaves the orchestrator: it is resolved to an absent image there.
    """
