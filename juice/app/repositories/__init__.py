from .juice_balance_repository import JuiceBalanceRepository
from .juice_purchase_repository import JuicePurchaseRepository
from .juice_spend_repository import JuiceSpendRepository
from .juice_cash_out_repository import JuiceCashOutRepository
from .credit_expiration_repository import CreditExpirationRepository
from .juice_transaction_repository import JuiceTransactionRepository

__all__ = [
    "JuiceBalanceRepository",
    "JuicePurchaseRepository",
    "JuiceSpendRepository",
    "JuiceCashOutRepository",
    "CreditExpirationRepository",
    "JuiceTransactionRepository",
]
