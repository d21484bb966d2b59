import pytest
from unittest.mock import AsyncMock, MagicMock


@pytest.fixture
def mock_uow():
    """Mock unit of work"""
    uow = MagicMock()
    uow.__aenter__ = AsyncMock(return_value=uow)
    uow.__aexit__ = AsyncMock()
    uow.commit = AsyncMock()
    uow.rollback = AsyncMock()
    return uow


@pytest.fixture
def mock_balance_repo():
    """Mock Juice balance repository"""
    return MagicMock()


@pytest.fixture
def mock_purchase_repo():
    """Mock Juice purchase repository"""
    return MagicMock()


@pytest.fixture
def mock_spend_repo():
    """Mock Juice spend repository"""
    return MagicMock()


@pytest.fixture
def mock_cash_out_repo():
    """Mock Juice cash out repository"""
    return MagicMock()


@pytest.fixture
def mock_expiration_repo():
    """Mock credit expiration repository"""
    return MagicMock()


@pytest.fixture
def mock_transaction_repo():
    """Mock Juice transaction history repository"""
    return MagicMock()
