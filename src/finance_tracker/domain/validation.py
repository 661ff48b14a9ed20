import math
from collections.abc import Collection, Mapping
from typing import Any

import pydantic

from finance_tracker.errors import ValidationError
from finance_tracker.models import AssetType, Transaction, TransactionType


def parse_transaction(payload: Mapping[str, Any] | Transaction) -> Transaction:
    """Build a Transaction from raw input, reporting field problems as ValidationError."""
    if isinstance(payload, Transaction):
        return payload
    try:
        return Transaction.model_validate(payload)
    except pydantic.ValidationError as exc:
        errors: dict[str, str] = {}
        for error in exc.errors():
            field = ".".join(str(part) for part in error["loc"]) or "transaction"
            errors.setdefault(field, error["msg"])
        raise ValidationError(errors) from exc


def _check_finite(errors: dict[str, str], field: str, value: float | None) -> None:
    if value is not None and not math.isfinite(value):
        errors[field] = "Must be a finite number."


def validate_transaction(transaction: Transaction, gold_categories: Collection[str]) -> Transaction:
    errors: dict[str, str] = {}

    if not transaction.description.strip():
        errors["description"] = "Description is required."
    for field in ("amount", "quantity", "purchase_price", "current_value", "fees"):
        _check_finite(errors, field, getattr(transaction, field))

    if transaction.is_investment:
        _validate_investment(transaction, gold_categories, errors)
    else:
        if not transaction.category.strip():
            errors["category"] = "Category is required."
        if transaction.amount == 0:
            errors["amount"] = "Amount must not be zero."
        elif transaction.type == TransactionType.EXPENSE and transaction.amount > 0:
            errors["amount"] = "Expenses need a negative amount."
        elif transaction.type == TransactionType.INCOME and transaction.amount < 0:
            errors["amount"] = "Income needs a positive amount."

    if errors:
        raise ValidationError(errors)
    return transaction


def _validate_investment(
    transaction: Transaction,
    gold_categories: Collection[str],
    errors: dict[str, str],
) -> None:
    if transaction.asset_type is None:
        errors["asset_type"] = "Asset type is required for investments."
    if transaction.quantity is None or transaction.quantity <= 0:
        errors["quantity"] = "Quantity must be greater than zero."
    if transaction.purchase_price is None or transaction.purchase_price < 0:
        errors["purchase_price"] = "Purchase price must be zero or more."
    if transaction.fees < 0:
        errors["fees"] = "Fees must be zero or more."
    if transaction.current_value is not None and transaction.current_value < 0:
        errors["current_value"] = "Current value must be zero or more."

    if transaction.asset_type == AssetType.GOLD:
        if not transaction.gold_category:
            errors["gold_category"] = "Gold investments need a gold category."
        elif transaction.gold_category not in gold_categories:
            errors["gold_category"] = f"Unknown gold category '{transaction.gold_category}'."
    elif transaction.gold_category:
        errors["gold_category"] = "Only gold investments take a gold category."
