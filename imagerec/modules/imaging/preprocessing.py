"""Image to tensor conversion and score postprocessing."""

from collections.abc import Callable, Sequence

import numpy as np
from PIL import Image

from imagerec.api.core.constants import DEFAULT_TOP_K
from imagerec.api.core.exceptions.base import PreprocessError
from imagerec.modules.imaging.tensor import CHANNELS, Tensor
from imagerec.modules.prediction.models import ClassificationResult
from imagerec.modules.registry.labels import describe as describe_class
from imagerec.modules.registry.labels import humanize

# ImageNet statistics
IMAGENET_MEAN = (0.485, 0.456, 0.406)
IMAGENET_STD = (0.229, 0.224, 0.225)


class ImagePreprocessor:
    """Resize, scale and normalize images into HWC float32 tensors."""

    def __init__(
        self,
        target_width: int = 224,
        target_height: int = 224,
        normalize: bool = True,
        mean: Sequence[float] = IMAGENET_MEAN,
        std: Sequence[float] = IMAGENET_STD,
    ):
        self.target_width = target_width
        self.target_height = target_height
        self.normalize = normalize
        self.mean = tuple(mean)
        self.std = tuple(std)

    @property
    def input_shape(self) -> list[int]:
        return [1, self.target_height, self.target_width, CHANNELS]

    def resize(
        self, image: Image.Image, size: tuple[int, int] | None = None
    ) -> Image.Image:
        """Convert to RGB, then Lanczos-resize to ``size`` or the target size."""
        width, height = size or (self.target_width, self.target_height)
        self._check_dimensions(width, height)
        try:
            rgb = image if image.mode == "RGB" else image.convert("RGB")
            return rgb.resize((width, height), Image.Resampling.LANCZOS)
        except (OSError, ValueError) as e:
            raise PreprocessError(f"failed to convert image: {e}") from e

    def preprocess(
        self, image: Image.Image, size: tuple[int, int] | None = None
    ) -> Tensor:
        self._check_normalization()
        width, height = size or (self.target_width, self.target_height)
        pixels = self._to_array(self.resize(image, (width, height)))
        return Tensor(data=pixels.reshape(1, -1), height=height, width=width)

    def preprocess_batch(
        self, images: Sequence[Image.Image], size: tuple[int, int] | None = None
    ) -> Tensor:
        if not images:
            raise PreprocessError("no images provided")
        width, height = size or (self.target_width, self.target_height)
        rows = [self.preprocess(image, (width, height)).data for image in images]
        return Tensor(data=np.vstack(rows), height=height, width=width)

    def _to_array(self, image: Image.Image) -> np.ndarray:
        pixels = np.asarray(image, dtype=np.float32) / np.float32(255.0)
        if self.normalize:
            mean = np.asarray(self.mean, dtype=np.float32)
            std = np.asarray(self.std, dtype=np.float32)
            pixels = (pixels - mean) / std
        return np.ascontiguousarray(pixels, dtype=np.float32)

    def _check_dimensions(self, width: int, height: int) -> None:
        if width <= 0 or height <= 0:
            raise PreprocessError(f"invalid target size {width}x{height}")

    def _check_normalization(self) -> None:
        if not self.normalize:
            return
        if len(self.mean) != CHANNELS or len(self.std) != CHANNELS:
            raise PreprocessError("normalization mean and std need one value per channel")
        if any(value == 0 for value in self.std):
            raise PreprocessError("normalization std must be non-zero")


def softmax(scores: Sequence[float] | np.ndarray) -> np.ndarray:
    values = np.asarray(scores, dtype=np.float64)
    if values.size == 0:
        return values
    # Subtract max for numerical stability
    exp_scores = np.exp(values - np.max(values))
    return exp_scores / np.sum(exp_scores)


def postprocess(
    raw_scores: Sequence[float] | np.ndarray,
    class_names: Sequence[str],
    top_k: int = DEFAULT_TOP_K,
    describe: Callable[[str], str] | None = None,
) -> list[ClassificationResult]:
    """Turn raw model scores into the ``top_k`` most likely classes.

    Ties keep class order. ``confidence`` is the full-set probability and
    ``probability`` is renormalized over the returned candidates.
    """
    scores = np.asarray(raw_scores, dtype=np.float64).ravel()
    if scores.size == 0 or not class_names:
        raise PreprocessError("empty predictions or class names")
    if scores.size != len(class_names):
        raise PreprocessError(
            f"predictions length ({scores.size}) does not match class names "
            f"length ({len(class_names)})"
        )
    if not np.all(np.isfinite(scores)):
        raise PreprocessError("model produced non-finite scores")

    if top_k <= 0:
        top_k = DEFAULT_TOP_K
    top_k = max(1, min(top_k, scores.size))
    describe = describe or describe_class

    probabilities = softmax(scores)
    order = np.argsort(-probabilities, kind="stable")[:top_k]
    selected = probabilities[order]
    total = float(np.sum(selected))

    results = []
    for index, confidence in zip(order, selected):
        class_name = class_names[int(index)]
        results.append(
            ClassificationResult(
                class_index=int(index),
                class_name=class_name,
                label=humanize(class_name),
                description=describe(class_name),
                confidence=float(confidence),
                probability=float(confidence) / total if total > 0 else 0.0,
            )
        )
    return results
