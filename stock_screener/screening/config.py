from __future__ import annotations

from typing import Dict

DEFAULT_SCORER_CONFIG: Dict[str, object] = {
    "enabled": [
        "liquidity",
        "implied_volatility",
        "delta",
    ],
    "weights": {
        "liquidity": 1.0,
        "implied_volatility": 1.0,
        "delta": 1.0,
    },
}


def merge_config(overrides: Dict[str, object] | None) -> Dict[str, object]:
    merged = dict(DEFAULT_SCORER_CONFIG)
    merged["enabled"] = list(DEFAULT_SCORER_CONFIG.get("enabled", ()))
    merged_weights = dict(DEFAULT_SCORER_CONFIG.get("weights", {}))
    if not overrides:
        merged["weights"] = merged_weights
        return merged
    if "weights" in overrides:
        merged_weights.update(overrides["weights"])
    merged["weights"] = merged_weights
    if "enabled" in overrides:
        merged["enabled"] = list(overrides["enabled"])
    for key, value in overrides.items():
        if key not in {"weights", "enabled"}:
            merged[key] = value
    return merged
