"""TorchScript-backed inference, loading ``model.pt`` next to each metadata.json."""

import threading
from pathlib import Path

import numpy as np
import torch

from imagerec.api.core.exceptions.base import InferenceError
from imagerec.modules.imaging.tensor import Tensor
from imagerec.modules.registry.models import LoadedModel
from imagerec.utils.logger import get_logger

logger = get_logger(__name__)

MODEL_FILENAME = "model.pt"
SUPPORTED_LAYOUTS = ("NCHW", "NHWC")


class TorchScriptEngine:
    name = "torchscript"

    def __init__(self, model_path: str | Path):
        self.model_path = Path(model_path)
        self._modules: dict[str, torch.jit.ScriptModule] = {}
        self._lock = threading.Lock()

    def _module(self, model: LoadedModel) -> torch.jit.ScriptModule:
        with self._lock:
            module = self._modules.get(model.id)
            if module is not None:
                return module

            path = self.model_path / model.id / MODEL_FILENAME
            if not path.is_file():
                raise InferenceError(f"model file not found: {path}", model.id)
            try:
                module = torch.jit.load(str(path), map_location="cpu")
            except (RuntimeError, ValueError) as e:
                raise InferenceError(f"failed to load {path}: {e}", model.id) from e
            module.eval()
            self._modules[model.id] = module
            logger.info("Loaded TorchScript module", model_id=model.id, path=str(path))
            return module

    def infer(self, tensor: Tensor, model: LoadedModel) -> np.ndarray:
        if not model.available:
            raise InferenceError(f"model not available: {model.id}", model.id)

        layout = model.info.metadata.get("input_layout", "NCHW").upper()
        if layout not in SUPPORTED_LAYOUTS:
            raise InferenceError(f"unsupported input layout: {layout}", model.id)

        module = self._module(model)
        batch = tensor.nchw() if layout == "NCHW" else tensor.hwc()

        try:
            with torch.no_grad():
                output = module(torch.from_numpy(batch))
        except RuntimeError as e:
            raise InferenceError(f"inference failed: {e}", model.id) from e

        if isinstance(output, (tuple, list)):
            output = output[0]
        scores = output.detach().cpu().numpy().reshape(batch.shape[0], -1)[0]

        expected = len(model.info.classes)
        if scores.size != expected:
            raise InferenceError(
                f"model returned {scores.size} scores for {expected} classes", model.id
            )
        return scores.astype(np.float64)

    def evict(self, model_id: str) -> None:
        with self._lock:
            self._modules.pop(model_id, None)
