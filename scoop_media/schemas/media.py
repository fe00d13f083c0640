"""Request/response bodies for the media routes (camelCase on the wire)."""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class UploadUrlIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    # Loosely typed: anything that is not a valid MIME string falls back to image/jpeg.
    content_type: Optional[Any] = Field(default=None, alias="contentType")


class UploadUrlOut(BaseModel):
    url: str
    key: str


class ProcessVideoIn(BaseModel):
    """Fields stay optional so missing values map to one 400 message."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    key: Optional[Any] = None
    start_time: Optional[Any] = Field(default=None, alias="startTime")
    end_time: Optional[Any] = Field(default=None, alias="endTime")


class ProcessVideoOut(BaseModel):
    key: str
    processed: bool


class DeleteOut(BaseModel):
    success: bool = True


__all__ = ["UploadUrlIn", "UploadUrlOut", "ProcessVideoIn", "ProcessVideoOut", "DeleteOut"]
