import io
import pytest
from werkzeug.datastructures import FileStorage

from norden import create_app, media_store

ADMIN_PASSWORD = "carpa-secreta"


@pytest.fixture
def app(tmp_path):
    app = create_app({
        "TESTING": True,
        "WTF_CSRF_ENABLED": False,
        "SECRET_KEY": "test",
        "DATABASE_URL": f"sqlite:///{tmp_path / 'test.db'}",
        "UPLOAD_ROOT": str(tmp_path / "uploads"),
        "ADMIN_PASSWORD": ADMIN_PASSWORD,
        "WHATSAPP_NUMBER": "5491100000000",
        "DB_CONNECT_RETRIES": 1,
    })
    yield app
    app.db_session.remove()
    app.engine.dispose()


@pytest.fixture
def db(app):
    return app.db_session


@pytest.fixture
def store(app):
    return media_store


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def admin(client):
    resp = client.post("/admin/login", data={"password": ADMIN_PASSWORD})
    assert resp.status_code == 302
    return client


@pytest.fixture
def make_upload():
    def _make(filename="photo.jpg", content_type="image/jpeg", payload=b"\xff\xd8\xff\xe0fake-jpeg"):
        return FileStorage(stream=io.BytesIO(payload), filename=filename, content_type=content_type)
    return _make
