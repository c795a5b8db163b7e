from pydantic import BaseModel
from typing import Optional


class MessageResponse(BaseModel):
    message: str


class ErrorResponse(BaseModel):
    error: str


class DownloadRequest(BaseModel):
    url: Optional[str] = None
    wait: bool = True  # False: return 202 with job_id immediately


class DownloadResponse(BaseModel):
    message: str
    filename: str
    job_id: str


class JobAcceptedResponse(BaseModel):
    job_id: str
    status: str


class JobStatusResponse(BaseModel):
    job_id: str
    status: str
    url: str
    title: Optional[str] = None
    filename: Optional[str] = None
    bytes_written: int = 0
    error: Optional[str] = None
