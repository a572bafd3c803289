import io
from typing import Iterable

import pytest
from fastapi.testclient import TestClient
from PIL import Image
from minio.error import S3Error
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from designcase_api import crud
from designcase_api.database import get_db, init_db
from designcase_api.errors import StorageError
from designcase_api.main import app
from designcase_api.storage import ObjectStorage, get_storage

OWNER_ID = "user-owner"
OTHER_USER_ID = "user-intruder"


class FakeS3Error(S3Error):
    """S3Error carrying only a code, independent of the client's constructor signature"""

    def __init__(self, code):
        Exception.__init__(self, code)
        self._fake_code = code

    @property
    def code(self):
        return self._fake_code

    def __str__(self):
        return self._fake_code


class FakeObjectStorage(ObjectStorage):
    """In-memory bucket recording every call made by the upload pipeline"""

    def __init__(self):
        super().__init__(client=None, bucket_name="design-files", public_base_url="http://storage.test")
        self.objects = {}
        self.put_calls = []
        self.delete_calls = []
        self.fail_put_when = None
        self.fail_delete = False

    async def put(self, path: str, data: bytes, content_type: str) -> str:
        self.put_calls.append(path)
        if self.fail_put_when is not None and self.fail_put_when(path):
            raise StorageError("simulated storage outage")
        if path in self.objects:
            raise StorageError(f"Object already exists: {path}")
        self.objects[path] = (data, content_type)
        return f"{self.bucket_name}/{path}"

    async def delete_many(self, paths: Iterable[str]):
        paths = [path for path in paths if path]
        self.delete_calls.append(paths)
        if self.fail_delete:
            raise StorageError("simulated delete failure")
        for path in paths:
            self.objects.pop(path, None)

    def data_for(self, path: str) -> bytes:
        return self.objects[path][0]


def make_image_bytes(fmt="PNG", size=(640, 480), color=(200, 40, 40), mode="RGB", **save_kwargs) -> bytes:
    """Create an in-memory image of the given format"""
    img = Image.new(mode, size, color=color)
    img_bytes = io.BytesIO()
    img.save(img_bytes, format=fmt, **save_kwargs)
    return img_bytes.getvalue()


def make_gradient_png(size=(2000, 2000), compress_level=0) -> bytes:
    """A large, highly compressible PNG stored without compression"""
    img = Image.linear_gradient("L").resize(size).convert("RGB")
    img_bytes = io.BytesIO()
    img.save(img_bytes, format="PNG", compress_level=compress_level)
    return img_bytes.getvalue()


@pytest.fixture
def engine():
    """In-memory SQLite shared by every session of a test"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def fake_storage():
    return FakeObjectStorage()


@pytest.fixture
def client(session_factory, fake_storage):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage] = lambda: fake_storage
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def project(db_session):
    return crud.create_project(db_session, OWNER_ID, "Checkout redesign", slug="checkout-redesign")


@pytest.fixture
def owner_headers():
    return {"X-User-Id": OWNER_ID}


@pytest.fixture
def intruder_headers():
    return {"X-User-Id": OTHER_USER_ID}


@pytest.fixture
def png_file():
    return {
        'filename': 'hero.png',
        'content': make_image_bytes("PNG", size=(800, 600)),
        'content_type': 'image/png'
    }


@pytest.fixture
def pdf_file():
    return {
        'filename': 'brief.pdf',
        'content': b"%PDF-1.4\n1 0 obj\n<< /Type /Catalog >>\nendobj\ntrailer\n<< /Root 1 0 R >>\n%%EOF\n",
        'content_type': 'application/pdf'
    }


@pytest.fixture
def corrupt_png_file():
    return {
        'filename': 'broken.png',
        'content': b"\x89PNG\r\n\x1a\n" + b"this is not really image data" * 20,
        'content_type': 'image/png'
    }


def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )
    config.addinivalue_line(
        "markers", "unit: mark test as unit test"
    )
    config.addinivalue_line(
        "markers", "api: mark test as exercising the HTTP surface"
    )
