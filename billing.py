"""Token and image accounting for the Gemini models a session calls."""

from dataclasses import dataclass, field
from typing import Mapping, Tuple


@dataclass
class Rates:
    """Pricing information for a model.

    All fields default to ``0`` so missing rates are treated as free.
    """
    text_input_cost_per_token: float = 0.0
    text_output_cost_per_token: float = 0.0
    output_cost_per_image: float = 0.0

    @classmethod
    def from_mapping(cls, data: Mapping[str, float]) -> "Rates":
        return cls(
            text_input_cost_per_token=data.get("text_input_cost_per_token", 0.0),
            text_output_cost_per_token=data.get("text_output_cost_per_token", 0.0),
            output_cost_per_image=data.get("output_cost_per_image", 0.0),
        )


# USD, per the public Gemini price list.
MODEL_COSTS: dict[str, dict[str, float]] = {
    "gemini-3-pro-preview": {
        "text_input_cost_per_token": 2.0 / 1_000_000,
        "text_output_cost_per_token": 12.0 / 1_000_000,
    },
    "gemini-2.5-flash": {
        "text_input_cost_per_token": 0.30 / 1_000_000,
        "text_output_cost_per_token": 2.50 / 1_000_000,
    },
    "gemini-2.5-flash-image": {
        "text_input_cost_per_token": 0.30 / 1_000_000,
        "output_cost_per_image": 0.039,
    },
}


def compute_text_costs(prompt_tokens: int, completion_tokens: int, rates: Mapping[str, float]) -> Tuple[float, float, float]:
    """Return (prompt_cost, completion_cost, total) for text tokens."""
    r = Rates.from_mapping(rates)
    cost_prompt = prompt_tokens * r.text_input_cost_per_token
    cost_completion = completion_tokens * r.text_output_cost_per_token
    return cost_prompt, cost_completion, cost_prompt + cost_completion


def compute_image_costs(image_count: int, rates: Mapping[str, float]) -> float:
    """Return total cost for ``image_count`` images."""
    r = Rates.from_mapping(rates)
    return image_count * r.output_cost_per_image


@dataclass
class ModelUsage:
    prompt_tokens: int = 0
    completion_tokens: int = 0
    images: int = 0


@dataclass
class UsageTotals:
    """Running usage per model name for one session."""

    by_model: dict[str, ModelUsage] = field(default_factory=dict)

    def _entry(self, model: str) -> ModelUsage:
        return self.by_model.setdefault(model, ModelUsage())

    def record_text(self, model: str, prompt_tokens: int, completion_tokens: int) -> None:
        entry = self._entry(model)
        entry.prompt_tokens += prompt_tokens
        entry.completion_tokens += completion_tokens

    def record_images(self, model: str, count: int = 1) -> None:
        self._entry(model).images += count

    def total_cost(self, table: Mapping[str, Mapping[str, float]] = MODEL_COSTS) -> float:
        """Return the summed cost of everything recorded so far."""
        total = 0.0
        for model, usage in self.by_model.items():
            rates = table.get(model, {})
            total += compute_text_costs(usage.prompt_tokens, usage.completion_tokens, rates)[2]
            total += compute_image_costs(usage.images, rates)
        return total
