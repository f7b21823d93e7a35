import pytest

from src.common.models.trade import Trade
from src.common.models.user import User
from src.common.models.watchlist import Watchlist
from src.common.utils.password_utils import get_password_hash, verify_password

BASE = "/api/v1/profile"


def _trade(client, action, quantity, price, symbol="AAPL"):
    response = client.post("/api/v1/trades/simulate", json={"symbol": symbol, "action": action, "quantity": quantity, "price": price})
    assert response.status_code == 200
    return response.json()


def test_profile_summary(auth_client, test_user):
    _trade(auth_client, "BUY", 10, 10.0)
    _trade(auth_client, "SELL", 4, 12.0)
    auth_client.post("/api/v1/watchlist/add", json={"symbol": "MSFT"})

    response = auth_client.get(BASE)

    assert response.status_code == 200
    body = response.json()
    assert body["user"]["username"] == test_user.username
    assert body["stats"]["total_trades"] == 2
    assert body["stats"]["watchlist_count"] == 1
    assert body["stats"]["total_profit"] == pytest.approx(8.0)
    assert body["stats"]["today_profit"] == pytest.approx(8.0)
    assert body["stats"]["win_rate"] == pytest.approx(100.0)
    assert [t["action"] for t in body["recent_trades"]] == ["SELL", "BUY"]


def test_update_profile(auth_client):
    response = auth_client.put(f"{BASE}/update", json={"email": "New@Example.com", "full_name": "Trader Kim"})

    assert response.status_code == 200
    assert response.json()["email"] == "new@example.com"
    assert response.json()["full_name"] == "Trader Kim"


def test_update_profile_email_taken(auth_client, db_session):
    db_session.add(User(username="other", email="other@example.com", hashed_password="x"))
    db_session.commit()

    response = auth_client.put(f"{BASE}/update", json={"email": "other@example.com"})

    assert response.status_code == 400


def test_change_password(auth_client, db_session, test_user):
    test_user.hashed_password = get_password_hash("oldsecret")
    db_session.commit()

    wrong = auth_client.post(f"{BASE}/change-password", json={
        "current_password": "nope", "new_password": "newsecret", "confirm_password": "newsecret",
    })
    mismatch = auth_client.post(f"{BASE}/change-password", json={
        "current_password": "oldsecret", "new_password": "newsecret", "confirm_password": "different",
    })
    ok = auth_client.post(f"{BASE}/change-password", json={
        "current_password": "oldsecret", "new_password": "newsecret", "confirm_password": "newsecret",
    })

    assert wrong.status_code == 400
    assert mismatch.status_code == 400
    assert ok.status_code == 200
    db_session.refresh(test_user)
    assert verify_password("newsecret", test_user.hashed_password)


def test_change_password_too_short_is_422(auth_client):
    response = auth_client.post(f"{BASE}/change-password", json={
        "current_password": "x", "new_password": "abc", "confirm_password": "abc",
    })

    assert response.status_code == 422


def test_delete_account(auth_client, db_session):
    _trade(auth_client, "BUY", 1, 10.0)
    auth_client.post("/api/v1/watchlist/add", json={"symbol": "AAPL"})

    response = auth_client.delete(f"{BASE}/delete")

    assert response.status_code == 200
    assert db_session.query(User).count() == 0
    assert db_session.query(Trade).count() == 0
    assert db_session.query(Watchlist).count() == 0
