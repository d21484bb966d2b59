from .base import BaseModel, generate_uuid
from .juice_balance import JuiceBalance, LedgerKind
from .juice_purchase import JuicePurchase, PurchaseStatus
from .juice_spend import JuiceSpend, SpendStatus
from .juice_cash_out import JuiceCashOut, CashOutStatus
from .credit_expiration import CreditExpiration

__all__ = [
    "BaseModel",
    "generate_uuid",
    "JuiceBalance",
    "LedgerKind",
    "JuicePurchase",
    "PurchaseStatus",
    "JuiceSpend",
    "SpendStatus",
    "JuiceCashOut",
    "CashOutStatus",
    "CreditExpiration",
]
