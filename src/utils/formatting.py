from __future__ import annotations

from decimal import Decimal


def format_decimal(value: Decimal) -> str:
    quantized = value.normalize()
    # Avoid scientific notation for integers.
    if quantized == quantized.to_integral():
        return f"{quantized:.0f}"
    return format(quantized, "f")


def format_amount(value: Decimal, *, places: int = 6) -> str:
    quantized = value.quantize(Decimal(1).scaleb(-places))
    return f"{quantized:.{places}f}"
