"""Application error taxonomy.

Every error raised by the summarize pipeline carries the HTTP status the API
layer answers with. Bot-side delivery failures never reach the API.
"""


class SaveMeAClickError(Exception):
    """Base class for all application errors."""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ExtractionError(SaveMeAClickError):
    """Article fetch returned nothing usable (no article, no title or no body)."""

    status_code = 502


class GenerationError(SaveMeAClickError):
    """LLM call failed after its retry budget or returned an empty completion."""

    status_code = 502


class ParseError(SaveMeAClickError):
    """LLM reply is missing one of the required section markers."""

    status_code = 500


class DeliveryError(SaveMeAClickError):
    """A bot could not post its reply to the social platform."""

    def __init__(self, message: str, status_code: int = 0):
        super().__init__(message)
        self.platform_status = status_code
