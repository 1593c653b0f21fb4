from __future__ import annotations

from typing import Dict, List, Optional
from pydantic import BaseModel, Field


class ConvertRequest(BaseModel):
    text: str = Field(examples=['title,priority\n"Color contrast fails",High'])
    delimiter: str = Field(default=",", min_length=1, max_length=1)


class EncodingReport(BaseModel):
    detected: Optional[str] = None
    decode_used: str
    decode_fallback: bool = False


class ConvertResponse(BaseModel):
    records: List[Dict[str, str]] = Field(default_factory=list)
    fields: List[str] = Field(default_factory=list)
    count: int = 0
    delimiter: str = ","
    sniffed: bool = False
    encoding: Optional[EncodingReport] = None


class StoredFileInfo(BaseModel):
    filename: str
    size: int
    mtime: float
    path: str


class UploadResponse(BaseModel):
    ok: bool = True
    filename: str
    original_name: Optional[str] = None
    size: int
    path: str


class UploadListResponse(BaseModel):
    ok: bool = True
    files: List[StoredFileInfo] = Field(default_factory=list)


class OkResponse(BaseModel):
    ok: bool = True


class ErrorResponse(BaseModel):
    error: str


class HealthResponse(BaseModel):
    ok: bool = True
