# geoscore/models/requests.py
from pydantic import BaseModel, Field, field_validator
from typing import List, Literal, Optional

OutputFormat = Literal["detailed", "summary"]

class AnalyzeRequest(BaseModel):
    url: str = Field(..., description="URL of the page to analyze")
    query: str = Field(..., description="Target query the page should answer")
    competitor_urls: Optional[List[str]] = Field(
        default=None,
        description="Competitor pages to summarise alongside the analysis"
    )
    auto_discover_competitors: bool = Field(
        default=False,
        description="Search for competitors when no competitor_urls are given"
    )
    jina_api_key: Optional[str] = Field(default=None, description="Overrides the configured Jina key")
    ai_model: Optional[str] = Field(default=None, description="Overrides the default model")
    semantic_analysis: bool = Field(default=True, description="Run LLM semantic augmentation")

    @field_validator("url", "query")
    @classmethod
    def not_blank(cls, v):
        if not v.strip():
            raise ValueError("Field cannot be empty or whitespace only")
        return v.strip()

class AnalyzeTextRequest(BaseModel):
    content: str = Field(..., description="Raw text or Markdown to analyze")
    query: str = Field(..., description="Target query the content should answer")
    title: Optional[str] = None
    url: Optional[str] = None
    ai_model: Optional[str] = None
    semantic_analysis: bool = True

    @field_validator("query")
    @classmethod
    def validate_query(cls, v):
        if not v.strip():
            raise ValueError("Query cannot be empty or whitespace only")
        return v.strip()

class CompareRequest(BaseModel):
    urls: List[str] = Field(..., description="URLs to compare (minimum 2, maximum 5)")
    query: str
    ai_model: Optional[str] = None
    output_format: OutputFormat = "detailed"

class ValidateRewriteRequest(BaseModel):
    original_url: str = Field(..., description="URL of the original content")
    optimized_content: str = Field(..., description="Rewritten content to score against the original")
    target_query: str
    title: Optional[str] = None
    ai_model: Optional[str] = None
    output_format: OutputFormat = "detailed"
