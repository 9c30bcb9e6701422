import io
import json

import boto3
import pytest
from botocore.config import Config
from botocore.response import StreamingBody
from botocore.stub import ANY, Stubber

from documents import StorageUnavailable, get_store, read_document, write_document
from documents.backends import LocalDocumentStore, S3DocumentStore


# ---------------------------------------------------------------------------
# Local filesystem
# ---------------------------------------------------------------------------


def test_local_read_missing_document_returns_copy_of_default(tmp_path):
    store = LocalDocumentStore(tmp_path)
    default = []

    value = store.read("bookings.json", default)
    value.append("x")

    assert value == ["x"]
    assert default == []


def test_local_write_creates_directory_and_pretty_json(tmp_path):
    store = LocalDocumentStore(tmp_path / "nested")

    store.write("time-slots.json", [{"id": "slot_1", "note": "Töpfern"}])

    text = (tmp_path / "nested" / "time-slots.json").read_text(encoding="utf-8")
    assert "Töpfern" in text
    assert text.startswith("[\n  {")
    assert store.read("time-slots.json", []) == [{"id": "slot_1", "note": "Töpfern"}]


def test_local_write_leaves_no_temp_files(tmp_path):
    store = LocalDocumentStore(tmp_path)
    store.write("bookings.json", [1])
    store.write("bookings.json", [1, 2])

    assert sorted(p.name for p in tmp_path.iterdir()) == ["bookings.json"]


def test_local_corrupt_document_is_storage_unavailable(tmp_path):
    (tmp_path / "bookings.json").write_text("{not json", encoding="utf-8")
    store = LocalDocumentStore(tmp_path)

    with pytest.raises(StorageUnavailable):
        store.read("bookings.json", [])


@pytest.mark.parametrize("name", ["", "../etc/passwd", "a/b.json", ".hidden"])
def test_document_names_are_validated(tmp_path, name):
    store = LocalDocumentStore(tmp_path)
    with pytest.raises(ValueError):
        store.read(name, [])


def test_module_level_helpers_use_data_dir(data_dir):
    write_document("reviews.json", [{"id": "r1"}])

    assert (data_dir / "reviews.json").exists()
    assert read_document("reviews.json", []) == [{"id": "r1"}]


def test_get_store_picks_local_without_s3_settings(data_dir):
    store = get_store()
    assert isinstance(store, LocalDocumentStore)
    assert store.root == data_dir


def test_get_store_picks_s3_when_fully_configured(settings):
    settings.S3_ENDPOINT = "http://s3.example.test"
    settings.S3_BUCKET = "studio"
    settings.S3_ACCESS_KEY = "key"
    settings.S3_SECRET_KEY = "secret"

    store = get_store()

    assert isinstance(store, S3DocumentStore)
    assert store.bucket == "studio"
    assert store.backup_keep == 10


# ---------------------------------------------------------------------------
# S3
# ---------------------------------------------------------------------------


@pytest.fixture
def s3_client():
    return boto3.client(
        "s3",
        endpoint_url="http://s3.example.test",
        region_name="eu-central-1",
        aws_access_key_id="key",
        aws_secret_access_key="secret",
        config=Config(s3={"addressing_style": "path"}),
    )


@pytest.fixture
def s3_store(s3_client):
    return S3DocumentStore(
        endpoint="http://s3.example.test",
        bucket="studio",
        access_key="key",
        secret_key="secret",
        prune_async=False,
        client=s3_client,
    )


def _body(value):
    raw = json.dumps(value).encode("utf-8")
    return StreamingBody(io.BytesIO(raw), len(raw))


def test_s3_read_returns_document(s3_store):
    with Stubber(s3_store.client) as stubber:
        stubber.add_response(
            "get_object",
            {"Body": _body([{"id": "slot_1"}])},
            {"Bucket": "studio", "Key": "data/time-slots.json"},
        )
        assert s3_store.read("time-slots.json", []) == [{"id": "slot_1"}]
        stubber.assert_no_pending_responses()


def test_s3_read_missing_key_returns_default(s3_store):
    with Stubber(s3_store.client) as stubber:
        stubber.add_client_error("get_object", service_error_code="NoSuchKey", http_status_code=404)
        assert s3_store.read("bookings.json", []) == []


def test_s3_read_other_errors_are_storage_unavailable(s3_store):
    with Stubber(s3_store.client) as stubber:
        stubber.add_client_error("get_object", service_error_code="AccessDenied", http_status_code=403)
        with pytest.raises(StorageUnavailable):
            s3_store.read("bookings.json", [])


def test_s3_write_backs_up_overwrites_and_prunes(s3_store):
    backup_keys = [f"backups/bookings.json/20240101T0000{i:02d}000000Z.json" for i in range(12)]

    with Stubber(s3_store.client) as stubber:
        stubber.add_response(
            "copy_object",
            {},
            {
                "Bucket": "studio",
                "Key": ANY,
                "CopySource": {"Bucket": "studio", "Key": "data/bookings.json"},
            },
        )
        stubber.add_response(
            "put_object",
            {},
            {"Bucket": "studio", "Key": "data/bookings.json", "Body": ANY, "ContentType": "application/json"},
        )
        stubber.add_response(
            "list_objects_v2",
            {"Contents": [{"Key": key} for key in backup_keys], "IsTruncated": False},
            {"Bucket": "studio", "Prefix": "backups/bookings.json/"},
        )
        # Only the two oldest fall outside the newest ten.
        stubber.add_response("delete_object", {}, {"Bucket": "studio", "Key": backup_keys[1]})
        stubber.add_response("delete_object", {}, {"Bucket": "studio", "Key": backup_keys[0]})

        s3_store.write("bookings.json", [{"id": "booking_1"}])

        stubber.assert_no_pending_responses()


def test_s3_write_proceeds_when_there_is_nothing_to_back_up(s3_store):
    with Stubber(s3_store.client) as stubber:
        stubber.add_client_error("copy_object", service_error_code="NoSuchKey", http_status_code=404)
        stubber.add_response("put_object", {}, None)
        stubber.add_response("list_objects_v2", {"IsTruncated": False}, None)

        s3_store.write("reviews.json", [])

        stubber.assert_no_pending_responses()


def test_s3_write_failure_is_storage_unavailable(s3_store):
    with Stubber(s3_store.client) as stubber:
        stubber.add_response("copy_object", {}, None)
        stubber.add_client_error("put_object", service_error_code="InternalError", http_status_code=500)

        with pytest.raises(StorageUnavailable):
            s3_store.write("bookings.json", [])


def test_s3_prune_failure_is_logged_not_raised(s3_store, caplog):
    with Stubber(s3_store.client) as stubber:
        stubber.add_client_error("list_objects_v2", service_error_code="AccessDenied", http_status_code=403)

        assert s3_store.prune_backups("bookings.json") == 0

    assert "Pruning backups of bookings.json failed" in caplog.text
