"""
Cost estimation derived from the model registry (models.py).

Prices are USD per 1M tokens and are subject to change; check the provider's
pricing page for current rates.
"""

from __future__ import annotations

import logging
from typing import Dict

from .models import ALL_MODELS, MODELS_BY_ID

logger = logging.getLogger(__name__)

PRICING: Dict[str, Dict[str, float]] = {
    model.id: {"prompt": model.prompt_cost, "completion": model.completion_cost}
    for model in ALL_MODELS
}


def calculate_cost(model: str, prompt_tokens: int, completion_tokens: int) -> float:
    """
    Calculate cost in USD for given token usage.

    Args:
        model: Concrete model id as reported by the provider.
        prompt_tokens: Number of prompt/input tokens.
        completion_tokens: Number of completion/output tokens.

    Returns:
        Estimated cost in USD, or 0.0 when the model has no pricing entry
        (local models, pass-through ids the registry does not know).
    """
    model_info = MODELS_BY_ID.get(model)
    if model_info is None:
        logger.debug("No pricing for model %r, reporting $0.00", model)
        return 0.0

    prompt_cost = (prompt_tokens / 1_000_000) * model_info.prompt_cost
    completion_cost = (completion_tokens / 1_000_000) * model_info.completion_cost
    return prompt_cost + completion_cost


__all__ = ["PRICING", "calculate_cost"]
