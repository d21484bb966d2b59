from .juice_balance_repository import SqlAlchemyJuiceBalanceRepository
from .juice_purchase_repository import SqlAlchemyJuicePurchaseRepository
from .juice_spend_repository import SqlAlchemyJuiceSpendRepository
from .juice_cash_out_repository import SqlAlchemyJuiceCashOutRepository
from .credit_expiration_repository import SqlAlchemyCreditExpirationRepository
from .juice_transaction_repository import SqlAlchemyJuiceTransactionRepository

__all__ = [
    "SqlAlchemyJuiceBalanceRepository",
    "SqlAlchemyJuicePurchaseRepository",
    "SqlAlchemyJuiceSpendRepository",
    "SqlAlchemyJuiceCashOutRepository",
    "SqlAlchemyCreditExpirationRepository",
    "SqlAlchemyJuiceTransactionRepository",
]
