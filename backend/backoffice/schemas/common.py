"""
Schemas shared by several routers.
"""

from pydantic import BaseModel, Field


class MessageResponse(BaseModel):
    """Plain confirmation message."""

    message: str = Field(..., description="Confirmation message")

    class Config:
        json_schema_extra = {"example": {"message": "Organization deleted"}}


class PageMeta(BaseModel):
    """
    Paging totals returned next to every list page.
    """

    total: int = Field(..., description="Total number of items")
    page: int = Field(..., description="Current page (1-based)")
    limit: int = Field(..., description="Items per page")
    total_pages: int = Field(..., description="Number of pages")
