from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class SummarizeRequest(BaseModel):
    url: str = Field(min_length=1, max_length=2048, description="Absolute http(s) URL of the article")

    @field_validator("url")
    @classmethod
    def _absolute_http_url(cls, v: str) -> str:
        # The response echoes the url as submitted, minus surrounding whitespace
        parts = urlsplit(v.strip())
        if parts.scheme not in ("http", "https") or not parts.netloc or any(c.isspace() for c in v.strip()):
            raise ValueError("url must be an absolute http(s) URL")
        return v.strip()


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class ContentQualityResponse(_CamelModel):
    readability: int = Field(ge=0, le=100)
    objectivity: int = Field(ge=0, le=100)
    depth: int = Field(ge=0, le=100)


class SummarizeResponse(_CamelModel):
    title: str
    assessment: str
    summary: str
    key_points: list[str]
    url: str
    quality_score: int
    time_saved: float = Field(description="Minutes saved versus reading the full article")
    processing_time: float = Field(description="Seconds spent producing this analysis")
    clickbait_score: int = Field(ge=0, le=100)
    content_quality: ContentQualityResponse


class HealthResponse(BaseModel):
    status: str = "ok"


class SmokeTestResponse(_CamelModel):
    message: str
    processing_time: float
    model: str
    chunks: int
