"""
Confidence scoring with an optional pre-trained model.

The model is a joblib artifact of any estimator with a `predict` method
taking rows of [profit_pct, liquidity_a, liquidity_b, liquidity_c]. Its
first output, scaled to 0-100, is the confidence score. Without a model
every score is 0.
"""

import asyncio
import io
import logging
import math
from collections.abc import Sequence

import aiohttp
import joblib
import numpy as np

from triscan.config.constants import DEFAULT_REQUEST_TIMEOUT
from triscan.core.types import Predictor


logger = logging.getLogger(__name__)

N_FEATURES = 4
MAX_SCORE = 100


def to_score(value: float) -> int:
    """Scale a model output to 0-100, rounding halves up."""
    if not math.isfinite(value):
        return 0
    scaled = math.floor(value * 100 + 0.5)
    return max(0, min(MAX_SCORE, scaled))


class ConfidenceScorer:
    """
    Scores candidates with a pre-trained model.

    Scoring never raises: a missing model, a failing prediction or a
    non-finite output all give a score of 0.
    """

    def __init__(self, model: Predictor | None = None) -> None:
        self._model = model

    @classmethod
    async def load(
        cls,
        url: str | None,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
    ) -> "ConfidenceScorer":
        """
        Download and deserialize a model artifact.

        Args:
            url: Location of the joblib artifact; None disables scoring.
            timeout: Download timeout in seconds.

        Returns:
            A scorer, without a model if anything went wrong.
        """
        if not url:
            logger.info("No model URL configured, scoring disabled")
            return cls()

        try:
            async with aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=timeout)
            ) as session:
                async with session.get(url) as response:
                    response.raise_for_status()
                    data = await response.read()
        except (aiohttp.ClientError, TimeoutError) as e:
            logger.warning(f"Model download failed ({url}): {e}")
            return cls()

        scorer = cls.from_bytes(data)
        if scorer.is_available:
            logger.info(f"Loaded scoring model from {url} ({len(data):,} bytes)")
        return scorer

    @classmethod
    def from_bytes(cls, data: bytes) -> "ConfidenceScorer":
        """Build a scorer from a serialized joblib artifact."""
        try:
            model = joblib.load(io.BytesIO(data))
        except Exception as e:
            logger.warning(f"Model artifact could not be loaded: {e}")
            return cls()

        if not callable(getattr(model, "predict", None)):
            logger.warning(f"Model artifact has no predict(): {type(model).__name__}")
            return cls()

        return cls(model)

    @property
    def is_available(self) -> bool:
        return self._model is not None

    def score(self, features: Sequence[float]) -> int:
        """
        Score one candidate.

        Args:
            features: [profit_pct, liquidity_a, liquidity_b, liquidity_c].

        Returns:
            Confidence in 0-100.
        """
        if self._model is None:
            return 0

        try:
            matrix = np.asarray(features, dtype=np.float64).reshape(1, N_FEATURES)
            output = np.asarray(self._model.predict(matrix), dtype=np.float64).ravel()
            value = float(output[0])
        except Exception:
            logger.warning("Model prediction failed, scoring 0", exc_info=True)
            return 0

        return to_score(value)

    def score_batch(self, rows: Sequence[Sequence[float]]) -> list[int]:
        """Score several candidates with one model call."""
        if not rows:
            return []
        if self._model is None:
            return [0] * len(rows)

        try:
            matrix = np.asarray(rows, dtype=np.float64).reshape(len(rows), N_FEATURES)
            outputs = np.asarray(self._model.predict(matrix), dtype=np.float64).ravel()
        except Exception:
            logger.warning("Model batch prediction failed, scoring 0", exc_info=True)
            return [0] * len(rows)

        if len(outputs) < len(rows):
            logger.warning(f"Model returned {len(outputs)} outputs for {len(rows)} rows")
            return [0] * len(rows)

        return [to_score(float(v)) for v in outputs[: len(rows)]]

    async def predict(self, features: Sequence[float]) -> int:
        """Score one candidate off the event loop thread."""
        if self._model is None:
            return 0
        return await asyncio.to_thread(self.score, features)
