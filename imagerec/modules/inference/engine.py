"""Inference backends turning a preprocessed tensor into raw class scores."""

import math
import zlib
from typing import Protocol

import numpy as np

from imagerec.api.core.exceptions.base import InferenceError
from imagerec.modules.imaging.tensor import Tensor
from imagerec.modules.registry.models import LoadedModel
from imagerec.utils.logger import get_logger
from imagerec.utils.settings.model import ModelSettings

logger = get_logger(__name__)


class InferenceEngine(Protocol):
    name: str

    def infer(self, tensor: Tensor, model: LoadedModel) -> np.ndarray:
        """Return one raw score per class of ``model`` for the first tensor row."""
        ...

    def evict(self, model_id: str) -> None: ...


class SimulatedEngine:
    """Deterministic stand-in for a real network.

    Scores depend only on the tensor size, a checksum of its content and the
    class index, so the same image always yields the same ranking.
    """

    name = "simulated"

    # Spreads the [0, 1] pseudo-confidences into logits so softmax has a clear winner
    LOGIT_SCALE = 8.0

    def infer(self, tensor: Tensor, model: LoadedModel) -> np.ndarray:
        if not model.available:
            raise InferenceError(f"model not available: {model.id}", model.id)

        class_count = len(model.info.classes)
        if class_count == 0:
            raise InferenceError(f"model {model.id} has no class labels", model.id)

        row = tensor.row(0)
        seed = row.size + zlib.crc32(row.tobytes())
        return self.pseudo_confidences(seed, class_count) * self.LOGIT_SCALE

    @staticmethod
    def pseudo_confidences(seed: int, class_count: int) -> np.ndarray:
        index = np.arange(class_count, dtype=np.int64)
        x = ((seed * 31 + index * 17) % 1000) / 1000.0
        confidence = np.exp(-3.0 * x) * (0.3 + 0.7 * np.sin(math.pi * x))
        return np.clip(np.abs(confidence), 0.0, 1.0)

    def evict(self, model_id: str) -> None:
        return None


def build_engine(settings: ModelSettings) -> InferenceEngine:
    backend = settings.INFERENCE_BACKEND
    if backend == "simulated":
        return SimulatedEngine()
    if backend == "torchscript":
        # torch is an optional extra
        from imagerec.modules.inference.torchscript import TorchScriptEngine

        return TorchScriptEngine(settings.MODEL_PATH)
    raise ValueError(f"unknown inference backend: {backend}")
