from __future__ import annotations

from decimal import Decimal

import pytest
import requests

from conftest import auth
from fanline.core.errors import PermissionDeniedError, RemoteOperationError, ValidationError
from fanline.schemas.enums import ContentType
from fanline.services import content_service


@pytest.fixture
def creator(store):
    return store.add_profile(role="creator", username="cleo", subscription_price="9.99")


class FakeUploader:
    def __init__(self, fail=None):
        self.calls = []
        self.fail = fail

    def __call__(self, object_path, blob, content_type):
        if self.fail:
            raise self.fail
        self.calls.append((object_path, blob, content_type))
        return f"https://cdn.example/{object_path}"


@pytest.mark.parametrize(
    "mime,expected",
    [("image/png", ContentType.IMAGE), ("VIDEO/mp4", ContentType.VIDEO), ("text/plain", None), (None, None)],
)
def test_content_type_for_mime(mime, expected):
    assert content_service.content_type_for_mime(mime) == expected


def test_media_object_path():
    assert content_service.media_object_path("c1", "Clip.MOV", now_ms=1700000000000) == "c1/1700000000000.mov"
    assert content_service.media_object_path("c1", "noext", now_ms=5) == "c1/5"


def test_publish_text_post(store, engine, creator):
    item, notice = content_service.publish_content(engine, creator, " Hello ", "text", description="first", price="4.999")

    assert item["title"] == "Hello"
    assert item["content_type"] == "text"
    assert item["is_premium"] is True
    assert item["price"] == Decimal("5.00")
    assert notice["description"] == "Content uploaded successfully!"


@pytest.mark.parametrize(
    "kwargs",
    [
        {"title": "", "content_type": "text"},
        {"title": "x", "content_type": "audio"},
        {"title": "x", "content_type": "image"},
        {"title": "x", "content_type": "video", "media_url": "  "},
        {"title": "x", "content_type": "text", "price": "-1"},
    ],
)
def test_publish_validation(store, engine, creator, kwargs):
    with pytest.raises(ValidationError):
        content_service.publish_content(engine, creator, **kwargs)
    assert store.content == {}


def test_only_creators_publish(store, engine):
    fan = store.add_profile()
    with pytest.raises(PermissionDeniedError):
        content_service.publish_content(engine, fan, "x", "text")


def test_feed_locks_premium_until_subscribed(store, engine, creator):
    fan = store.add_profile()
    content_service.publish_content(engine, creator, "free", "text", description="open", is_premium=False)
    content_service.publish_content(
        engine, creator, "paid", "image", description="secret", media_url="https://cdn.example/a.png"
    )

    feed = {i["title"]: i for i in content_service.list_feed(engine, fan)}
    assert feed["free"]["locked"] is False
    assert feed["free"]["description"] == "open"
    assert feed["paid"]["locked"] is True
    assert feed["paid"]["media_url"] is None
    assert feed["paid"]["description"] is None

    store.insert_subscription(None, fan["id"], creator["id"], None, None)
    feed = {i["title"]: i for i in content_service.list_feed(engine, fan)}
    assert feed["paid"]["locked"] is False
    assert feed["paid"]["media_url"] == "https://cdn.example/a.png"


def test_creator_sees_own_premium(store, engine, creator):
    content_service.publish_content(engine, creator, "paid", "text")

    feed = content_service.list_feed(engine, creator)
    mine = content_service.list_creator_content(engine, creator)

    assert feed[0]["locked"] is False
    assert [i["title"] for i in mine] == ["paid"]


def test_upload_media_stores_under_creator_prefix(creator):
    uploader = FakeUploader()

    out = content_service.upload_media(uploader, creator, "pic.PNG", b"\x89PNG", "image/png")

    path, blob, mime = uploader.calls[0]
    assert path.startswith(creator["id"] + "/") and path.endswith(".png")
    assert blob == b"\x89PNG"
    assert mime == "image/png"
    assert out == {"media_url": f"https://cdn.example/{path}", "content_type": "image", "path": path}


@pytest.mark.parametrize(
    "uploader,blob,mime",
    [(None, b"x", "image/png"), (FakeUploader(), b"", "image/png"), (FakeUploader(), b"x", "application/pdf")],
)
def test_upload_media_validation(creator, uploader, blob, mime):
    with pytest.raises(ValidationError):
        content_service.upload_media(uploader, creator, "f.bin", blob, mime)


def test_upload_failure_is_remote_error(creator):
    uploader = FakeUploader(fail=requests.ConnectionError("storage down"))
    with pytest.raises(RemoteOperationError) as exc:
        content_service.upload_media(uploader, creator, "a.mp4", b"x", "video/mp4")
    assert exc.value.operation == "upload media"


# -- HTTP -------------------------------------------------------------------


def test_upload_route(client, app, creator):
    uploader = FakeUploader()
    app.state.ctx.media_uploader = uploader

    r = client.post(
        "/v1/content/media",
        files={"file": ("clip.mp4", b"\x00\x01", "video/mp4")},
        headers=auth(creator),
    )

    assert r.status_code == 200
    assert r.json()["content_type"] == "video"
    assert r.json()["media_url"].endswith(".mp4")


def test_upload_route_without_storage(client, creator):
    r = client.post(
        "/v1/content/media",
        files={"file": ("clip.mp4", b"\x00\x01", "video/mp4")},
        headers=auth(creator),
    )
    assert r.status_code == 400
    assert r.json()["detail"] == "media storage is not configured"


def test_publish_and_feed_routes(client, store, creator):
    fan = store.add_profile()

    r = client.post(
        "/v1/content",
        json={"title": "Behind the scenes", "content_type": "text", "description": "hi"},
        headers=auth(creator),
    )
    assert r.status_code == 200
    assert r.json()["notice"]["title"] == "Success"

    feed = client.get("/v1/content/feed", headers=auth(fan)).json()["items"]
    assert feed[0]["locked"] is True
    assert feed[0]["creator_username"] == "cleo"

    assert client.get("/v1/content/mine", headers=auth(fan)).status_code == 403
    assert len(client.get("/v1/content/mine", headers=auth(creator)).json()["items"]) == 1
