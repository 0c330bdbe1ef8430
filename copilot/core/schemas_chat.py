"""Pydantic schemas for the chat endpoint."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ChatTurn(BaseModel):
    """One prior message of a caller-held conversation."""

    role: Literal["user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    """Request schema for a chat message."""

    model_config = ConfigDict(populate_by_name=True)

    message: str = Field(..., description="User question", min_length=1)
    selected_company_slug: str | None = Field(
        default=None,
        alias="selectedCompanySlug",
        description="Company pinned by the caller, always surfaced first",
    )
    top_k: int | None = Field(
        default=None,
        alias="topK",
        description="Requested number of retrieved companies; clamped, never rejected",
    )
    history: list[ChatTurn] = Field(
        default_factory=list, description="Earlier turns, oldest first"
    )

    @field_validator("message")
    @classmethod
    def message_not_blank(cls, v: str) -> str:
        """Ensure message is not just whitespace."""
        if not v.strip():
            raise ValueError("Message cannot be empty")
        return v


class Source(BaseModel):
    """A company cited as a source for an answer."""

    name: str
    slug: str
    radical_primary_category: str | None = None


class ChatResponse(BaseModel):
    """Response schema for a chat message."""

    answer: str = Field(..., description="Generated answer text")
    sources: list[Source] = Field(..., description="Companies the answer was grounded on")
