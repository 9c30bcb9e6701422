import base64
import json

import pytest

from documents import reset_store


@pytest.fixture(autouse=True)
def data_dir(tmp_path, settings):
    """Every test gets its own empty local document store."""
    settings.DATA_DIR = tmp_path / "data"
    settings.S3_ENDPOINT = ""
    settings.S3_BUCKET = ""
    reset_store()
    yield settings.DATA_DIR
    reset_store()


@pytest.fixture
def admin_headers(settings):
    settings.ADMIN_USERNAME = "admin"
    settings.ADMIN_PASSWORD = "s3cret"
    token = base64.b64encode(b"admin:s3cret").decode("ascii")
    return {"HTTP_AUTHORIZATION": f"Basic {token}"}


@pytest.fixture
def post_json(client):
    def _post(url, payload, method="post", **extra):
        send = getattr(client, method)
        return send(url, data=json.dumps(payload), content_type="application/json", **extra)

    return _post
