"""
Fee aggregation for an elected set of membership types.

Rules:
- Group definitions by billing frequency.
- Within a group, add every base amount and every required additional fee.
- List optional additional fees without adding them.
- Never add totals of different frequencies together; the quote's
  ``illustrative_total`` is the only combined figure and is not payable.

Precondition: the caller has already enforced at most one type per scope.
Two club-level types in the same quote are both charged.
"""

from decimal import Decimal
from typing import Iterable

from libs.common.currency import sum_money, to_money
from services.members_service.schemas import (
    FeeQuote,
    FrequencyTotal,
    MembershipTypeDefinition,
    OptionalCharge,
)


def quote_fees(definitions: Iterable[MembershipTypeDefinition]) -> FeeQuote:
    """
    Compute amounts owed for ``definitions``, one bucket per frequency.

    Raises:
        ValueError: if the definitions are priced in different currencies
    """
    quote = FeeQuote()

    for definition in definitions:
        fee = definition.fee
        if quote.currency is None:
            quote.currency = fee.currency
        elif quote.currency != fee.currency:
            raise ValueError(
                f"Cannot quote {definition.type_id} in {fee.currency}; "
                f"quote is in {quote.currency}"
            )

        bucket = quote.per_frequency.setdefault(fee.frequency, FrequencyTotal())
        bucket.type_ids.append(definition.type_id)
        bucket.required = sum_money(
            bucket.required,
            fee.base_amount,
            *(extra.amount for extra in fee.additional_fees if extra.required),
        )

        for extra in fee.additional_fees:
            if not extra.required:
                bucket.optional.append(
                    OptionalCharge(
                        name=extra.name,
                        amount=to_money(extra.amount),
                        type_id=definition.type_id,
                        description=extra.description,
                    )
                )

    return quote


def required_total_for(definition: MembershipTypeDefinition) -> Decimal:
    """Required amount for a single definition, e.g. a renewal fee default."""
    return quote_fees([definition]).required_for(definition.fee.frequency)
