import time

from imagerec.api.core.constants import MAX_TOP_K
from imagerec.api.core.exceptions.base import (
    DeadlineExceededError,
    ImageRecException,
    InferenceError,
)
from imagerec.core.base import BaseService
from imagerec.core.context import PredictionContext
from imagerec.modules.imaging import codec
from imagerec.modules.imaging.preprocessing import ImagePreprocessor, postprocess
from imagerec.modules.imaging.tensor import Tensor
from imagerec.modules.inference.engine import InferenceEngine
from imagerec.modules.prediction.application.images import ImageService
from imagerec.modules.prediction.models import (
    BatchError,
    BatchItem,
    BatchPredictionResult,
    ImageMetadata,
    PredictionResult,
)
from imagerec.modules.prediction.store import ResultStore
from imagerec.modules.registry.models import ModelHealth, ModelInfo, ModelStatus
from imagerec.modules.registry.registry import ModelRegistry


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000


class PredictionService(BaseService):
    """Runs the decode, preprocess, infer and postprocess pipeline and keeps results."""

    def __init__(
        self,
        registry: ModelRegistry,
        engine: InferenceEngine,
        store: ResultStore,
        images: ImageService,
        preprocessor: ImagePreprocessor,
        default_top_k: int = MAX_TOP_K,
    ):
        super().__init__()
        self.registry = registry
        self.engine = engine
        self.store = store
        self.images = images
        self.preprocessor = preprocessor
        self.default_top_k = default_top_k

    def predict(
        self,
        image_bytes: bytes,
        metadata: ImageMetadata,
        model_id: str | None = None,
        context: PredictionContext | None = None,
        top_k: int | None = None,
        tensor: Tensor | None = None,
    ) -> PredictionResult:
        """
        Classify an image with the requested (or default) model.

        Args:
            image_bytes: Encoded image, usually ProcessedUpload.data
            metadata: Metadata of the original upload
            model_id: Registry id; None selects the default model
            context: Optional deadline/cancellation state checked between stages
            top_k: Number of candidates to return, capped at five
            tensor: Already preprocessed input (ProcessedUpload.tensor); used
                instead of decoding ``image_bytes`` when its size matches the
                model input

        Returns:
            The stored PredictionResult

        Raises:
            ModelNotFoundError: unknown model id, nothing is recorded
            ImageRecException: any later stage failure, recorded against the model
        """
        context = context or PredictionContext()
        model = self.registry.get(model_id)
        start = time.perf_counter()
        limit = min(top_k or self.default_top_k, MAX_TOP_K)

        try:
            if not self._fits_model(tensor, model.info.input_size):
                context.check("decode")
                decoded = codec.decode(image_bytes)

                context.check("preprocess")
                tensor = self.preprocessor.preprocess(
                    decoded.image, model.info.input_size
                )

            context.check("infer")
            scores = self.engine.infer(tensor, model)

            context.check("postprocess")
            predictions = postprocess(scores, model.info.classes, limit)
        except ImageRecException as e:
            self.registry.record_outcome(model.id, _elapsed_ms(start), success=False)
            self.logger.warning(
                "Prediction failed",
                model_id=model.id,
                message_code=e.message_code.value,
                description=e.description,
            )
            raise
        except Exception as e:
            self.registry.record_outcome(model.id, _elapsed_ms(start), success=False)
            self.logger.error(
                "Unexpected prediction error", model_id=model.id, error=str(e)
            )
            raise InferenceError("prediction failed due to an internal error", model.id) from e

        elapsed = _elapsed_ms(start)
        self.registry.record_outcome(model.id, elapsed, success=True)

        result = self.store.put(
            PredictionResult(
                id=self.store.new_id(),
                predictions=predictions,
                metadata=metadata,
                process_time_ms=elapsed,
                model_info=model.info,
            )
        )

        self.logger.info(
            "Prediction completed",
            result_id=result.id,
            model_id=model.id,
            process_time_ms=round(elapsed, 2),
            top_class=predictions[0].class_name,
        )
        return result

    def _fits_model(self, tensor: Tensor | None, input_size: tuple[int, int] | None) -> bool:
        if tensor is None:
            return False
        width, height = input_size or (
            self.preprocessor.target_width,
            self.preprocessor.target_height,
        )
        return (tensor.width, tensor.height) == (width, height)

    def predict_batch(
        self,
        items: list[BatchItem],
        model_id: str | None = None,
        context: PredictionContext | None = None,
    ) -> BatchPredictionResult:
        """Predict each item independently; failures are reported per item."""
        start = time.perf_counter()
        batch = BatchPredictionResult()

        for item in items:
            try:
                upload = self.images.process_upload(
                    item.data, item.filename, item.content_type, context=context
                )
                batch.results[item.id] = self.predict(
                    upload.data, upload.metadata, model_id, context, tensor=upload.tensor
                )
            except DeadlineExceededError:
                raise
            except ImageRecException as e:
                batch.errors[item.id] = BatchError(
                    message_code=e.message_code, message=e.message, details=e.details
                )

        batch.process_time_ms = _elapsed_ms(start)
        self.logger.info(
            "Batch prediction completed",
            items=len(items),
            errors=len(batch.errors),
            process_time_ms=round(batch.process_time_ms, 2),
        )
        return batch

    def fetch_result(self, result_id: str) -> PredictionResult:
        return self.store.get(result_id)

    def list_models(self) -> list[ModelInfo]:
        return self.registry.list()

    def model_info(self, model_id: str) -> tuple[ModelInfo, ModelHealth]:
        model = self.registry.get(model_id)
        return model.info, self.registry.health(model.id)

    def model_status(self) -> ModelStatus:
        return self.registry.status()

    def is_ready(self, model_id: str | None = None) -> bool:
        try:
            self.registry.validate_for_prediction(model_id)
        except ImageRecException:
            return False
        return True

    def reload_model(self, model_id: str) -> ModelInfo:
        model = self.registry.reload(model_id)
        self.engine.evict(model_id)
        return model.info

    def results_count(self) -> int:
        return self.store.count()

    def sweep_results(self, max_age_seconds: float) -> int:
        return self.store.sweep(max_age_seconds)
