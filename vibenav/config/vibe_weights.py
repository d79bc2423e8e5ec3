"""
Vibe weight table configuration
Emotion → feature weights plus the scoring thresholds, loaded from JSON so they
can be swapped without code changes.
"""
from __future__ import annotations

import json
import math
from pathlib import Path
from typing import Any, Dict, List, Optional

from vibenav.config import settings
from vibenav.models.vibe import FEATURE_NAMES
from vibenav.services.errors import ConfigurationError

DEFAULT_WEIGHTS_PATH = Path(__file__).with_name("vibe_weights.json")

_REQUIRED_SCALARS = (
    "missing_data_confidence_threshold",
    "detour_penalty_per_minute",
    "night_mode_safety_threshold",
    "night_mode_penalty",
)


class VibeWeightsConfig:
    """Emotion weight table and scoring thresholds."""

    def __init__(self, path: Optional[str | Path] = None) -> None:
        if path is None:
            path = settings.vibe_weights_path or DEFAULT_WEIGHTS_PATH
        self.path = Path(path)
        self._data: Dict[str, Any] = {}
        self.reload()

    def reload(self) -> None:
        """Re-read the weight table from disk."""
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError as exc:
            raise ConfigurationError(f"Vibe weight table missing at {self.path}") from exc
        except ValueError as exc:
            raise ConfigurationError(f"Vibe weight table at {self.path} is not valid JSON") from exc
        self._data = self._validate(raw)

    def load(self, data: Dict[str, Any]) -> None:
        """Swap in an already parsed table."""
        self._data = self._validate(data)

    @staticmethod
    def _validate(data: Dict[str, Any]) -> Dict[str, Any]:
        if not isinstance(data, dict):
            raise ConfigurationError("Vibe weight table must be a JSON object")

        emotions = data.get("emotions")
        if not isinstance(emotions, dict) or not emotions:
            raise ConfigurationError("Vibe weight table has no emotions")

        cleaned: Dict[str, Dict[str, float]] = {}
        for emotion, weights in emotions.items():
            if not isinstance(weights, dict) or not weights:
                raise ConfigurationError(f"Emotion '{emotion}' has no feature weights")
            table: Dict[str, float] = {}
            for feature, weight in weights.items():
                if feature not in FEATURE_NAMES:
                    raise ConfigurationError(
                        f"Emotion '{emotion}' references unknown feature '{feature}'"
                    )
                try:
                    value = float(weight)
                except (TypeError, ValueError) as exc:
                    raise ConfigurationError(
                        f"Weight for '{emotion}.{feature}' is not a number"
                    ) from exc
                # Negative weights would break score monotonicity
                if math.isnan(value) or value < 0:
                    raise ConfigurationError(
                        f"Weight for '{emotion}.{feature}' must be non-negative"
                    )
                table[feature] = value
            cleaned[emotion] = table

        result: Dict[str, Any] = {"emotions": cleaned}
        for key in _REQUIRED_SCALARS:
            if key not in data:
                raise ConfigurationError(f"Vibe weight table is missing '{key}'")
            try:
                result[key] = float(data[key])
            except (TypeError, ValueError) as exc:
                raise ConfigurationError(f"'{key}' must be a number") from exc
        return result

    def emotion_weights(self, emotion: str) -> Dict[str, float]:
        """Weights for a known emotion; unknown keys are a hard failure."""
        weights = self._data["emotions"].get(emotion)
        if weights is None:
            raise ConfigurationError(f"Undefined emotion state: {emotion}")
        return dict(weights)

    def emotions(self) -> List[str]:
        return list(self._data["emotions"].keys())

    @property
    def missing_data_confidence_threshold(self) -> float:
        return self._data["missing_data_confidence_threshold"]

    @property
    def detour_penalty_per_minute(self) -> float:
        return self._data["detour_penalty_per_minute"]

    @property
    def night_mode_safety_threshold(self) -> float:
        return self._data["night_mode_safety_threshold"]

    @property
    def night_mode_penalty(self) -> float:
        return self._data["night_mode_penalty"]


# Global weight table instance
vibe_weights_config = VibeWeightsConfig()
