from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

import pytest

from conftest import auth
from fanline.core.errors import (
    IllegalStateError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from fanline.services import chat_sessions_service, subscriptions_service, tips_service


@pytest.fixture
def creator(store):
    return store.add_profile(role="creator", username="cleo", display_name="Cleo", subscription_price="9.99")


@pytest.fixture
def fan(store):
    return store.add_profile(role="subscriber", username="sam")


# -- subscriptions ----------------------------------------------------------


def test_subscribe_opens_one_period(store, engine, clock, creator, fan):
    subscription, notice = subscriptions_service.subscribe(engine, fan, creator["id"], period_days=30)

    assert subscription["status"] == "active"
    assert subscription["current_period_start"] == clock.now
    assert subscription["current_period_end"] == clock.now + timedelta(days=30)
    assert notice["description"] == "Successfully subscribed to creator for $9.99/month"


def test_subscribe_twice_conflicts(store, engine, clock, creator, fan):
    subscriptions_service.subscribe(engine, fan, creator["id"])

    with pytest.raises(IllegalStateError):
        subscriptions_service.subscribe(engine, fan, creator["id"])
    assert len(store.subscriptions) == 1


def test_subscribe_checks(store, engine, clock, creator, fan):
    no_price = store.add_profile(role="creator")
    with pytest.raises(ValidationError):
        subscriptions_service.subscribe(engine, fan, no_price["id"])
    with pytest.raises(NotFoundError):
        subscriptions_service.subscribe(engine, fan, fan["id"])
    with pytest.raises(PermissionDeniedError):
        subscriptions_service.subscribe(engine, creator, no_price["id"])


def test_cancel_then_resubscribe(store, engine, clock, creator, fan):
    subscription, _ = subscriptions_service.subscribe(engine, fan, creator["id"])

    cancelled, notice = subscriptions_service.cancel(engine, fan, subscription["id"])
    assert cancelled["status"] == "cancelled"
    assert notice["title"] == "Unsubscribed"

    with pytest.raises(IllegalStateError):
        subscriptions_service.cancel(engine, fan, subscription["id"])

    again, _ = subscriptions_service.subscribe(engine, fan, creator["id"])
    assert again["id"] != subscription["id"]
    assert [s["id"] for s in subscriptions_service.list_active(engine, fan)] == [again["id"]]


def test_cancel_someone_elses_subscription(store, engine, clock, creator, fan):
    subscription, _ = subscriptions_service.subscribe(engine, fan, creator["id"])
    other = store.add_profile()

    with pytest.raises(PermissionDeniedError):
        subscriptions_service.cancel(engine, other, subscription["id"])
    with pytest.raises(NotFoundError):
        subscriptions_service.cancel(engine, fan, "00000000-0000-0000-0000-000000000000")


def test_subscription_routes(client, store, creator, fan):
    r = client.post("/v1/subscriptions", json={"creator_id": creator["id"]}, headers=auth(fan))
    assert r.status_code == 200
    sub_id = r.json()["subscription"]["id"]

    assert client.post("/v1/subscriptions", json={"creator_id": creator["id"]}, headers=auth(fan)).status_code == 409

    listed = client.get("/v1/subscriptions", headers=auth(fan)).json()["subscriptions"]
    assert listed[0]["creator_name"] == "Cleo"
    assert Decimal(listed[0]["subscription_price"]) == Decimal("9.99")

    assert client.post(f"/v1/subscriptions/{sub_id}/cancel", headers=auth(fan)).status_code == 200
    assert client.get("/v1/subscriptions", headers=auth(fan)).json()["subscriptions"] == []


# -- tips and earnings ------------------------------------------------------


def test_send_tip(store, engine, creator, fan):
    tip, notice = tips_service.send_tip(engine, fan, creator["id"], "5.005", message="  thanks ")

    assert tip["amount"] == Decimal("5.01")
    assert tip["message"] == "thanks"
    assert notice["description"] == "You tipped Cleo $5.01"


@pytest.mark.parametrize("amount", ["0", "-3", "0.004", "abc", None])
def test_tip_amount_must_be_positive(store, engine, creator, fan, amount):
    with pytest.raises(ValidationError):
        tips_service.send_tip(engine, fan, creator["id"], amount)
    assert store.tips == []


def test_tip_content_must_belong_to_creator(store, engine, creator, fan):
    other = store.add_profile(role="creator")
    item = store.insert_content(None, other["id"], "x", None, "text", None, True, None)

    with pytest.raises(ValidationError):
        tips_service.send_tip(engine, fan, creator["id"], "1", content_id=item["id"])


def test_cannot_tip_yourself(store, engine, creator):
    with pytest.raises(ValidationError):
        tips_service.send_tip(engine, creator, creator["id"], "1")


def test_earnings_sum_tips_and_closed_chats(store, engine, bus, clock, creator, fan):
    tips_service.send_tip(engine, fan, creator["id"], "2.50")
    tips_service.send_tip(engine, fan, creator["id"], "1.25")
    session = store.add_session(fan["id"], creator["id"], "25.00", clock.now)
    clock.advance(90)
    chat_sessions_service.close(engine, bus, session["id"])
    store.add_session(fan["id"], creator["id"], "25.00", clock.now)  # still open, not counted
    subscriptions_service.subscribe(engine, fan, creator["id"])

    earnings = tips_service.creator_earnings(engine, creator)

    assert earnings == {
        "creator_id": creator["id"],
        "tips_total": "3.75",
        "chat_total": "0.63",
        "total": "4.38",
        "active_subscribers": 1,
    }


def test_tip_and_earnings_routes(client, store, creator, fan):
    r = client.post("/v1/tips", json={"creator_id": creator["id"], "amount": "3"}, headers=auth(fan))
    assert r.status_code == 200
    assert Decimal(r.json()["tip"]["amount"]) == Decimal("3.00")

    assert client.get("/v1/earnings", headers=auth(fan)).status_code == 403
    assert client.get("/v1/earnings", headers=auth(creator)).json()["tips_total"] == "3.00"


def test_malformed_ids_are_bad_requests(client, store, engine, creator, fan):
    assert client.post("/v1/subscriptions", json={"creator_id": "nope"}, headers=auth(fan)).status_code == 400
    assert client.post("/v1/subscriptions/nope/cancel", headers=auth(fan)).status_code == 400

    r = client.post("/v1/tips", json={"creator_id": "nope", "amount": "3"}, headers=auth(fan))
    assert r.status_code == 400
    r = client.post("/v1/tips", json={"creator_id": creator["id"], "amount": "3", "content_id": "42"}, headers=auth(fan))
    assert r.status_code == 400
    assert r.json()["detail"] == "content_id must be a uuid"

    assert store.subscriptions == {}
    assert store.tips == []
