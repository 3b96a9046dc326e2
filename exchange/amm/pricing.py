"""Constant product pricing with a fixed 0.3% fee.

The pool prices every swap with x * y = k after taking the fee out of the
tradable input, so k never decreases across a swap and the fee accrues to
liquidity providers.
"""

from __future__ import annotations

from exchange.constants import FEE_DENOMINATOR, FEE_NUMERATOR
from exchange.errors import InvalidQuoteInput
from exchange.safe_int import S


class PricingEngine:
    """Stateless constant product math.

    Formula: output = (in * 997 * res_out) / (res_in * 1000 + in * 997)

    All arithmetic is checked uint256 integer math and every rounding step
    favours the pool over the trader.
    """

    def quote_output(self, input_amount: int, input_reserve: int, output_reserve: int) -> int:
        """Calculate the output amount for an exact input.

        Args:
            input_amount: Amount sold to the pool
            input_reserve: Pool reserve of the sold unit, excluding input_amount
            output_reserve: Pool reserve of the bought unit

        Returns:
            Amount bought, always strictly below output_reserve when
            output_reserve > 0

        Raises:
            InvalidQuoteInput: If input_amount or input_reserve is zero
        """
        if input_amount <= 0 or input_reserve <= 0:
            raise InvalidQuoteInput(
                f"Cannot quote input {input_amount} against input reserve {input_reserve}"
            )

        input_with_fee = S(input_amount) * FEE_NUMERATOR
        numerator = input_with_fee * S(output_reserve)
        denominator = S(input_reserve) * FEE_DENOMINATOR + input_with_fee

        return (numerator // denominator).value

    def quote_input(self, output_amount: int, input_reserve: int, output_reserve: int) -> int:
        """Calculate the input amount required for an exact output.

        Formula: input = (res_in * out * 1000) / ((res_out - out) * 997) + 1

        The trailing +1 rounds up, so quote_output(quote_input(x)) >= x.

        Args:
            output_amount: Amount to buy from the pool
            input_reserve: Pool reserve of the sold unit
            output_reserve: Pool reserve of the bought unit

        Returns:
            Amount that must be sold

        Raises:
            InvalidQuoteInput: If output_amount or input_reserve is zero, or
                output_amount is not below output_reserve
        """
        if output_amount <= 0 or input_reserve <= 0:
            raise InvalidQuoteInput(
                f"Cannot quote output {output_amount} against input reserve {input_reserve}"
            )
        if output_amount >= output_reserve:
            raise InvalidQuoteInput(
                f"Output {output_amount} must be below output reserve {output_reserve}"
            )

        numerator = S(input_reserve) * S(output_amount) * FEE_DENOMINATOR
        denominator = (S(output_reserve) - S(output_amount)) * FEE_NUMERATOR

        return ((numerator // denominator) + 1).value


# Singleton instance
pricing_engine = PricingEngine()


__all__ = [
    "PricingEngine",
    "pricing_engine",
]
