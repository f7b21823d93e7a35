import pytest

from src.common.services.watchlist_service import WatchlistService
from src.common.utils.exceptions import ValidationError


def test_add_list_remove(db_session, test_user):
    service = WatchlistService()

    assert service.add_symbol(db_session, test_user.id, "aapl", name="Apple Inc.") is True
    assert service.add_symbol(db_session, test_user.id, "MSFT") is True
    assert service.add_symbol(db_session, test_user.id, "AAPL") is False

    rows = service.get_watchlist(db_session, test_user.id)
    assert sorted(row.symbol for row in rows) == ["AAPL", "MSFT"]
    names = {row.symbol: row.name for row in rows}
    assert names == {"AAPL": "Apple Inc.", "MSFT": "MSFT"}

    assert service.remove_symbol(db_session, test_user.id, "aapl") is True
    assert service.remove_symbol(db_session, test_user.id, "AAPL") is False
    assert [row.symbol for row in service.get_watchlist(db_session, test_user.id)] == ["MSFT"]


def test_watchlist_is_per_user(db_session, test_user):
    service = WatchlistService()
    service.add_symbol(db_session, test_user.id, "AAPL")

    assert service.get_watchlist(db_session, test_user.id + 1) == []


def test_invalid_symbol_rejected(db_session, test_user):
    with pytest.raises(ValidationError):
        WatchlistService().add_symbol(db_session, test_user.id, "not a symbol")
