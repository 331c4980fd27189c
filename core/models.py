"""
Pydantic models for the enhancement flow and API responses
"""
from enum import Enum
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class JobStatus(str, Enum):
    PENDING = "pending"
    SUCCESS = "success"
    ERROR = "error"


class EnhancementRequest(BaseModel):
    image_bytes: bytes
    original_filename: str = "temp.jpg"
    scale_ratio: int = 4
    type: int = 0  # provider enhancement mode
    content_type: Optional[str] = None  # as sent by the client


class EnhancementJob(BaseModel):
    code: Union[int, str]  # provider job code, echoed back unchanged
    username: str
    scale_ratio: int
    type: int
    status: JobStatus = JobStatus.PENDING
    attempts: int = 0  # status calls made so far


class EnhancedArtifact(BaseModel):
    download_url: str  # provider URL of the result
    local_filename: str
    local_path: Path


class EnhanceResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    original_url: str = Field(alias="originalUrl")
    local_url: str = Field(alias="localUrl")
    filename: str


class ErrorResponse(BaseModel):
    error: str
    details: Optional[str] = None
