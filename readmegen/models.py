"""
Pydantic models for request / response / error payloads.

  Request:  {"githubUrl": "..."}
  Response: {"readme": "..."}
  Error:    {"error": "..."}
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class GenerateReadmeRequest(BaseModel):
    github_url: str | None = Field(
        default=None,
        alias="githubUrl",
        description="URL of a GitHub repository",
    )

    model_config = {"populate_by_name": True}


class GenerateReadmeResponse(BaseModel):
    readme: str = Field(..., description="Generated README in Markdown")


class ErrorResponse(BaseModel):
    error: str
