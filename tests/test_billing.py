import sys
import pathlib

sys.path.append(str(pathlib.Path(__file__).resolve().parents[1]))

import billing
from config import AppConfig


def test_compute_text_costs():
    rates = {"text_input_cost_per_token": 0.1, "text_output_cost_per_token": 0.2}
    cp, cc, total = billing.compute_text_costs(10, 5, rates)
    assert cp == 1.0
    assert cc == 1.0
    assert total == 2.0


def test_compute_image_costs():
    rates = {"output_cost_per_image": 0.5}
    assert billing.compute_image_costs(3, rates) == 1.5


def test_missing_rates_are_free():
    assert billing.compute_text_costs(1000, 1000, {})[2] == 0.0
    assert billing.compute_image_costs(4, {}) == 0.0


def test_default_models_have_prices():
    cfg = AppConfig()
    for model in (cfg.narrative_model, cfg.critic_model):
        assert billing.MODEL_COSTS[model]["text_output_cost_per_token"] > 0
    assert billing.MODEL_COSTS[cfg.image_model]["output_cost_per_image"] > 0


def test_usage_totals_accumulate_per_model():
    usage = billing.UsageTotals()
    usage.record_text("text", 10, 5)
    usage.record_text("text", 10, 5)
    usage.record_images("art", 2)
    table = {
        "text": {"text_input_cost_per_token": 0.1, "text_output_cost_per_token": 0.2},
        "art": {"output_cost_per_image": 0.5},
    }
    assert usage.by_model["text"].prompt_tokens == 20
    assert usage.by_model["art"].images == 2
    assert usage.total_cost(table) == 5.0
