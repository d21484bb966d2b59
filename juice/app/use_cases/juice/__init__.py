from .get_balance import GetBalance
from .create_purchase import CreatePurchase, settlement_delay_days_for_risk
from .credit_juice import CreditJuice
from .credit_due_purchases import CreditDuePurchases
from .mark_purchase import MarkPurchaseDisputed, MarkPurchaseRefunded
from .spend_juice import SpendJuice
from .initiate_cash_out import InitiateCashOut
from .cancel_cash_out import CancelCashOut
from .settle_spends import SettleSpends
from .settle_cash_outs import SettleCashOuts
from .process_single_spend import ProcessSingleSpend
from .expire_inactive_credits import ExpireInactiveCredits
from .list_transactions import ListTransactions
from .user_history import ListUserPurchases, ListUserSpends, ListUserCashOuts
from .list_spends import ListSpends
from .get_spend_stats import GetSpendStats
from .reconcile_balances import ReconcileBalances
from .settlement import juice_to_wei

__all__ = [
    "GetBalance",
    "CreatePurchase",
    "settlement_delay_days_for_risk",
    "CreditJuice",
    "CreditDuePurchases",
    "MarkPurchaseDisputed",
    "MarkPurchaseRefunded",
    "SpendJuice",
    "InitiateCashOut",
    "CancelCashOut",
    "SettleSpends",
    "SettleCashOuts",
    "ProcessSingleSpend",
    "ExpireInactiveCredits",
    "ListTransactions",
    "ListUserPurchases",
    "ListUserSpends",
    "ListUserCashOuts",
    "ListSpends",
    "GetSpendStats",
    "ReconcileBalances",
    "juice_to_wei",
]
