"""
Per-call cost attribution for LLM usage.
Rates are USD per million tokens for four token categories. Tables are immutable and
injected, so tests can pass synthetic rates. No rounding here; round only for display.
"""
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Mapping

PER_MILLION = Decimal("1000000")


@dataclass(frozen=True)
class ModelRates:
    input: Decimal
    output: Decimal
    cache_write: Decimal
    cache_read: Decimal


@dataclass(frozen=True)
class TokenUsage:
    """Provider usage report. Absent counters are 0."""
    input_tokens: int = 0
    output_tokens: int = 0
    cache_creation_input_tokens: int = 0
    cache_read_input_tokens: int = 0

    @classmethod
    def from_provider(cls, usage: Mapping[str, Any] | None) -> "TokenUsage":
        usage = usage or {}
        return cls(
            input_tokens=_token_count(usage, "input_tokens"),
            output_tokens=_token_count(usage, "output_tokens"),
            cache_creation_input_tokens=_token_count(usage, "cache_creation_input_tokens"),
            cache_read_input_tokens=_token_count(usage, "cache_read_input_tokens"),
        )


def _token_count(usage: Mapping[str, Any], key: str) -> int:
    try:
        return max(0, int(usage.get(key) or 0))
    except (TypeError, ValueError):
        return 0


@dataclass(frozen=True)
class PricingTable:
    """Exact model id -> rates. Unrecognized models use `default`."""
    default: ModelRates
    rates: Mapping[str, ModelRates] = field(default_factory=dict)

    def rates_for(self, model: str | None) -> ModelRates:
        return self.rates.get(model or "", self.default)


_SONNET_RATES = ModelRates(
    input=Decimal("3.00"),
    output=Decimal("15.00"),
    cache_write=Decimal("3.75"),
    cache_read=Decimal("0.30"),
)

DEFAULT_PRICING = PricingTable(
    default=_SONNET_RATES,
    rates={"claude-sonnet-4-20250514": _SONNET_RATES},
)


class CostCalculator:
    def __init__(self, pricing: PricingTable = DEFAULT_PRICING):
        self.pricing = pricing

    def cost(self, usage: TokenUsage, model: str | None) -> Decimal:
        rates = self.pricing.rates_for(model)
        return (
            Decimal(usage.input_tokens) * rates.input / PER_MILLION
            + Decimal(usage.output_tokens) * rates.output / PER_MILLION
            + Decimal(usage.cache_creation_input_tokens) * rates.cache_write / PER_MILLION
            + Decimal(usage.cache_read_input_tokens) * rates.cache_read / PER_MILLION
        )


def calculate_cost(usage: TokenUsage, model: str | None, pricing: PricingTable = DEFAULT_PRICING) -> Decimal:
    return CostCalculator(pricing).cost(usage, model)
