from __future__ import annotations

import json
import logging
import posixpath
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional
from urllib.parse import quote

from fastapi import Depends, FastAPI, File, Query, Request, UploadFile
from fastapi.responses import JSONResponse, Response

from . import __version__
from .config import Settings, get_settings
from .decoding import decode_upload
from .errors import (
    ConversionError,
    CsvToJsonError,
    InvalidDelimiterError,
    MissingUploadError,
    UnsupportedFileTypeError,
)
from .logging import setup_logging
from .models import (
    ConvertRequest,
    ConvertResponse,
    EncodingReport,
    ErrorResponse,
    HealthResponse,
    OkResponse,
    StoredFileInfo,
    UploadListResponse,
    UploadResponse,
)
from .records import Conversion, convert
from .rules import DEFAULT_DELIMITER
from .storage import StoredFile, UploadStore

LOGGER = logging.getLogger(__name__)

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Bad input"},
    404: {"model": ErrorResponse, "description": "File not found"},
    422: {"model": ErrorResponse, "description": "Unsupported file type or delimiter"},
    500: {"model": ErrorResponse, "description": "Failed to parse CSV"},
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    setup_logging(get_settings())
    yield


app = FastAPI(
    title="csv-to-json",
    description="Convert CSV text and uploaded CSV files into JSON records",
    version=__version__,
    lifespan=lifespan,
)


@app.exception_handler(CsvToJsonError)
async def _csv_to_json_error_handler(request: Request, exc: CsvToJsonError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc)})


def get_store(settings: Settings = Depends(get_settings)) -> UploadStore:
    return UploadStore(settings.upload_dir)


def _convert(text: str, delimiter: str) -> Conversion:
    try:
        return convert(text, delimiter)
    except InvalidDelimiterError:
        raise
    except Exception as exc:
        LOGGER.exception("CSV conversion failed")
        raise ConversionError() from exc


def _convert_response(conversion: Conversion, encoding: Optional[Dict[str, Any]] = None) -> ConvertResponse:
    return ConvertResponse(
        records=conversion.records,
        fields=conversion.fields,
        count=len(conversion.records),
        delimiter=conversion.delimiter,
        sniffed=conversion.sniffed,
        encoding=EncodingReport(**encoding) if encoding is not None else None,
    )


def _file_info(stored: StoredFile) -> StoredFileInfo:
    return StoredFileInfo(filename=stored.filename, size=stored.size, mtime=stored.mtime, path=stored.path)


def _attachment(filename: str) -> Dict[str, str]:
    return {"Content-Disposition": f'attachment; filename="{quote(filename)}"'}


@app.get("/health", response_model=HealthResponse)
def health():
    return {"ok": True}


@app.post("/convert", response_model=ConvertResponse)
def convert_text(body: ConvertRequest):
    return _convert_response(_convert(body.text, body.delimiter))


@app.post("/convert/file", response_model=ConvertResponse, responses=_ERROR_RESPONSES)
async def convert_file(
    file: Optional[UploadFile] = File(default=None),
    delimiter: str = Query(default=DEFAULT_DELIMITER, min_length=1, max_length=1),
):
    if file is None:
        raise MissingUploadError()
    if not (file.filename or "").lower().endswith(".csv"):
        raise UnsupportedFileTypeError("Only CSV files are supported")

    raw = await file.read()
    text, report = decode_upload(raw)
    return _convert_response(_convert(text, delimiter), report)


@app.post("/api/upload", response_model=UploadResponse, responses=_ERROR_RESPONSES)
async def upload(
    file: Optional[UploadFile] = File(default=None),
    store: UploadStore = Depends(get_store),
):
    if file is None:
        raise MissingUploadError()

    data = await file.read()
    stored = store.put(file.filename or "upload", data)
    return UploadResponse(
        filename=stored.filename,
        original_name=file.filename,
        size=stored.size,
        path=stored.path,
    )


@app.get("/api/uploaded", response_model=UploadListResponse)
def list_uploaded(store: UploadStore = Depends(get_store)):
    return UploadListResponse(files=[_file_info(f) for f in store.list()])


@app.get("/api/uploaded/{filename}", responses=_ERROR_RESPONSES)
def download_uploaded(filename: str, store: UploadStore = Depends(get_store)):
    info = store.stat(filename)
    data = store.get(filename)
    media_type = "text/csv" if posixpath.splitext(info.filename)[1].lower() == ".csv" else "application/octet-stream"
    return Response(content=data, media_type=media_type, headers=_attachment(info.filename))


@app.delete("/api/uploaded/{filename}", response_model=OkResponse, responses=_ERROR_RESPONSES)
def delete_uploaded(filename: str, store: UploadStore = Depends(get_store)):
    store.delete(filename)
    return {"ok": True}


@app.get("/api/uploaded/{filename}/records", response_model=ConvertResponse, responses=_ERROR_RESPONSES)
def uploaded_records(
    filename: str,
    delimiter: str = Query(default=DEFAULT_DELIMITER, min_length=1, max_length=1),
    store: UploadStore = Depends(get_store),
):
    text, report = decode_upload(store.get(filename))
    return _convert_response(_convert(text, delimiter), report)


@app.get("/api/uploaded/{filename}/json", responses=_ERROR_RESPONSES)
def uploaded_json(
    filename: str,
    delimiter: str = Query(default=DEFAULT_DELIMITER, min_length=1, max_length=1),
    store: UploadStore = Depends(get_store),
):
    safe_name, _ = store.resolve(filename)
    text, _ = decode_upload(store.get(filename))
    records = _convert(text, delimiter).records
    stem = posixpath.splitext(safe_name)[0] or "data"
    body = json.dumps(records, indent=2, ensure_ascii=False)
    return Response(content=body, media_type="application/json", headers=_attachment(f"{stem}.json"))
