import json
from pathlib import Path

from app.main import app


def test_openapi_paths_snapshot():
    snapshot_path = Path(__file__).parent / "snapshots" / "openapi_paths_snapshot.json"
    expected_paths = json.loads(snapshot_path.read_text(encoding="utf-8"))
    actual_paths = sorted(app.openapi()["paths"].keys())
    assert actual_paths == expected_paths


def test_error_envelope_is_documented():
    schema = app.openapi()
    assert "ErrorOut" in schema["components"]["schemas"]

    create_order = schema["paths"]["/sales-orders"]["post"]
    assert set(create_order["responses"]) >= {"201", "400", "401"}
    assert create_order["tags"] == ["sales-orders"]
