"""SaveMeAClick — article summaries and clickbait assessment."""

__version__ = "1.0.0"
