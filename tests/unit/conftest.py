"""Store doubles for use case and service unit tests."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from stockledger.config import LedgerSettings
from stockledger.core.entities import Product, Warehouse
from stockledger.core.services.line_locks import StockLineLockTable


def assign_id(new_id: int):
    """side_effect that stamps an id on the entity and returns it."""

    def side_effect(entity):
        entity.id = new_id
        return entity

    return side_effect


@pytest.fixture
def mock_session():
    session = AsyncMock()
    session.save_stock_line.side_effect = lambda line: line
    session.add_movement.side_effect = assign_id(100)
    session.add_cost_lot.side_effect = assign_id(200)
    return session


@pytest.fixture
def mock_unit_of_work(mock_session):
    uow = MagicMock()
    uow.__aenter__ = AsyncMock(return_value=mock_session)
    uow.__aexit__ = AsyncMock(return_value=False)
    return uow


@pytest.fixture
def mock_ledger_store(mock_unit_of_work):
    store = AsyncMock()
    store.unit_of_work = MagicMock(return_value=mock_unit_of_work)
    return store


@pytest.fixture
def mock_master_data():
    master_data = AsyncMock()
    master_data.get_product.side_effect = lambda pid: Product(id=pid, name=f"Product {pid}")
    master_data.get_warehouse.side_effect = lambda wid: Warehouse(id=wid, name=f"Warehouse {wid}")
    return master_data


@pytest.fixture
def mock_audit_sink():
    sink = AsyncMock()
    sink.record.side_effect = lambda entry: entry
    return sink


@pytest.fixture
def unit_settings() -> LedgerSettings:
    return LedgerSettings(lock_timeout=0.5, snapshot_timeout=0.5, actor="tester")


@pytest.fixture
def unit_deps(mock_ledger_store, mock_master_data, mock_audit_sink, unit_settings) -> dict:
    return {
        "ledger_store": mock_ledger_store,
        "master_data": mock_master_data,
        "audit_sink": mock_audit_sink,
        "locks": StockLineLockTable(timeout=unit_settings.lock_timeout),
        "settings": unit_settings,
    }
