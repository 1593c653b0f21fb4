import json

import pytest
from fastapi.testclient import TestClient

from csv_to_json import records
from csv_to_json.config import Settings, get_settings
from csv_to_json.main import app

client = TestClient(app)


@pytest.fixture
def upload_dir(tmp_path):
    target = tmp_path / "uploaded"
    app.dependency_overrides[get_settings] = lambda: Settings(upload_dir=target)
    yield target
    app.dependency_overrides.clear()


def _upload(name="bugs.csv", body=b"title,priority\nContrast,High\n"):
    r = client.post("/api/upload", files={"file": (name, body, "text/csv")})
    assert r.status_code == 200
    return r.json()


def test_convert_text():
    r = client.post("/convert", json={"text": 'a,"b,c"\nd,e'})
    assert r.status_code == 200
    data = r.json()
    assert data["records"] == [{"a": "d", "b,c": "e"}]
    assert data["delimiter"] == ","
    assert data["sniffed"] is False
    assert data["encoding"] is None


def test_convert_text_sniffs_tabs():
    r = client.post("/convert", json={"text": "name\tqty\napple\t3"})
    data = r.json()
    assert data["records"] == [{"name": "apple", "qty": "3"}]
    assert data["delimiter"] == "\t"
    assert data["sniffed"] is True


def test_convert_blank_text():
    r = client.post("/convert", json={"text": "   \n"})
    assert r.status_code == 200
    assert r.json()["records"] == []
    assert r.json()["count"] == 0


def test_convert_rejects_quote_delimiter():
    r = client.post("/convert", json={"text": "a,b\n1,2", "delimiter": '"'})
    assert r.status_code == 422
    assert r.json() == {"error": "Invalid delimiter: '\"'"}


def test_unexpected_failure_is_generic(monkeypatch):
    def explode(rows):
        raise RuntimeError("boom")

    monkeypatch.setattr(records, "build", explode)
    r = client.post("/convert", json={"text": "a,b\n1,2"})
    assert r.status_code == 500
    assert r.json() == {"error": "Failed to parse CSV"}


def test_upload_list_download_delete(upload_dir):
    uploaded = _upload()
    name = uploaded["filename"]
    assert uploaded["ok"] is True
    assert uploaded["original_name"] == "bugs.csv"
    assert name.startswith("bugs__") and name.endswith(".csv")
    assert uploaded["path"] == f"uploaded/{name}"
    assert (upload_dir / name).read_bytes() == b"title,priority\nContrast,High\n"

    listing = client.get("/api/uploaded").json()
    assert listing["ok"] is True
    assert [f["filename"] for f in listing["files"]] == [name]

    r = client.get(f"/api/uploaded/{name}")
    assert r.status_code == 200
    assert r.content == b"title,priority\nContrast,High\n"
    assert r.headers["content-type"].startswith("text/csv")
    assert r.headers["content-disposition"] == f'attachment; filename="{name}"'

    r = client.delete(f"/api/uploaded/{name}")
    assert r.json() == {"ok": True}
    assert client.get("/api/uploaded").json()["files"] == []


def test_non_csv_download_is_octet_stream(upload_dir):
    name = _upload("notes.txt", b"hello")["filename"]
    r = client.get(f"/api/uploaded/{name}")
    assert r.headers["content-type"] == "application/octet-stream"


def test_upload_requires_file(upload_dir):
    r = client.post("/api/upload", files={"other": ("x.csv", b"a", "text/csv")})
    assert r.status_code == 400
    assert r.json() == {"error": "No file provided under field 'file'"}


def test_missing_file_is_404(upload_dir):
    assert client.get("/api/uploaded/nope.csv").status_code == 404
    r = client.delete("/api/uploaded/nope.csv")
    assert r.status_code == 404
    assert r.json() == {"error": "File not found"}
    assert client.get("/api/uploaded/nope.csv/records").status_code == 404


def test_stored_file_records(upload_dir):
    name = _upload("export.csv", b"Name;Amount\r\nJohn;1,50\r\n\r\nJane;2,75\r\n")["filename"]
    r = client.get(f"/api/uploaded/{name}/records")
    assert r.status_code == 200
    data = r.json()
    assert data["delimiter"] == ";"
    assert data["records"] == [
        {"Name": "John", "Amount": "1,50"},
        {"Name": "Jane", "Amount": "2,75"},
    ]


def test_stored_file_json_download(upload_dir):
    name = _upload("bugs.csv", "title,owner\nContraste,Zoë\n".encode("utf-8"))["filename"]
    r = client.get(f"/api/uploaded/{name}/json")
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("application/json")
    stem = name[: -len(".csv")]
    assert r.headers["content-disposition"] == f'attachment; filename="{stem}.json"'
    assert json.loads(r.content) == [{"title": "Contraste", "owner": "Zoë"}]
    assert r.text.startswith('[\n  {\n    "title"')


def test_error_responses_are_documented():
    schema = client.get("/openapi.json").json()
    responses = schema["paths"]["/convert/file"]["post"]["responses"]
    assert {"400", "404", "422", "500"} <= set(responses)
    ref = responses["500"]["content"]["application/json"]["schema"]["$ref"]
    assert ref.endswith("/ErrorResponse")
    assert "error" in schema["components"]["schemas"]["ErrorResponse"]["properties"]
