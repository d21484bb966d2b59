"""Entity -> response DTO conversions shared by the Juice use cases"""

from juice.domain.juice_cash_out import JuiceCashOut
from juice.domain.juice_purchase import JuicePurchase
from juice.domain.juice_spend import JuiceSpend
from .dtos import CashOutResponseDTO, PurchaseResponseDTO, SpendResponseDTO


def to_purchase_dto(purchase: JuicePurchase) -> PurchaseResponseDTO:
    return PurchaseResponseDTO(
        purchase_id=purchase.id,
        user_id=purchase.user_id,
        payment_reference=purchase.payment_reference,
        fiat_amount=purchase.fiat_amount,
        juice_amount=purchase.juice_amount,
        currency=purchase.currency,
        status=purchase.status.value,
        risk_score=purchase.risk_score,
        settlement_delay_days=purchase.settlement_delay_days,
        clears_at=purchase.clears_at,
        credited_at=purchase.credited_at,
        created_at=purchase.created_at,
    )


def to_spend_dto(spend: JuiceSpend) -> SpendResponseDTO:
    return SpendResponseDTO(
        spend_id=spend.id,
        user_id=spend.user_id,
        project_id=spend.project_id,
        chain_id=spend.chain_id,
        beneficiary_address=spend.beneficiary_address,
        memo=spend.memo,
        juice_amount=spend.juice_amount,
        status=spend.status.value,
        crypto_amount=spend.crypto_amount,
        rate=spend.rate,
        tx_hash=spend.tx_hash,
        tokens_received=spend.tokens_received,
        error_message=spend.error_message,
        retry_count=spend.retry_count,
        created_at=spend.created_at,
        updated_at=spend.updated_at,
    )


def to_cash_out_dto(cash_out: JuiceCashOut) -> CashOutResponseDTO:
    return CashOutResponseDTO(
        cash_out_id=cash_out.id,
        user_id=cash_out.user_id,
        destination_address=cash_out.destination_address,
        chain_id=cash_out.chain_id,
        juice_amount=cash_out.juice_amount,
        status=cash_out.status.value,
        available_at=cash_out.available_at,
        crypto_amount=cash_out.crypto_amount,
        rate=cash_out.rate,
        tx_hash=cash_out.tx_hash,
        error_message=cash_out.error_message,
        retry_count=cash_out.retry_count,
        created_at=cash_out.created_at,
        updated_at=cash_out.updated_at,
    )
