"""In-memory registry of classification models discovered under MODEL_PATH."""

import json
from datetime import datetime, timezone
from pathlib import Path

from pydantic import ValidationError

from imagerec.api.core.constants import (
    DEFAULT_INPUT_SHAPE,
    PLACEHOLDER_CLASS_COUNT,
    PLACEHOLDER_MODEL_ID,
)
from imagerec.api.core.exceptions.base import (
    ModelLoadError,
    ModelNotFoundError,
    ModelUnavailableError,
)
from imagerec.core.base import BaseService
from imagerec.core.locks import ReadWriteLock
from imagerec.modules.registry.labels import default_classes
from imagerec.modules.registry.models import (
    LoadedModel,
    ModelHealth,
    ModelInfo,
    ModelStatus,
)

METADATA_FILENAME = "metadata.json"


class ModelRegistry(BaseService):
    """Thread-safe catalog of loaded models and their runtime statistics.

    Reads (get, list, status) share the lock; load, reload, unload and
    outcome recording take it exclusively.
    """

    def __init__(self, model_path: str | Path, default_version: str = "latest"):
        super().__init__()
        self.model_path = Path(model_path)
        self.default_version = default_version
        self._models: dict[str, LoadedModel] = {}
        self._default_model: str | None = None
        self._lock = ReadWriteLock()

    @property
    def default_model_id(self) -> str | None:
        with self._lock.read():
            return self._default_model

    @property
    def is_placeholder_only(self) -> bool:
        with self._lock.read():
            return bool(self._models) and all(
                model.is_placeholder for model in self._models.values()
            )

    def load_all(self) -> int:
        """Scan the model directory and (re)build the catalog.

        Returns the number of models loaded from disk; when that is zero a
        placeholder model is registered instead.
        """
        with self._lock.write():
            self._models.clear()
            self._default_model = None

            if not self.model_path.is_dir():
                self.logger.warning(
                    "Model directory does not exist", model_path=str(self.model_path)
                )
                self._register_placeholder()
                return 0

            try:
                entries = sorted(self.model_path.iterdir(), key=lambda p: p.name)
            except OSError as e:
                self.logger.error(
                    "Failed to scan model directory",
                    model_path=str(self.model_path),
                    error=str(e),
                )
                self._register_placeholder()
                return 0

            loaded = 0
            for entry in entries:
                if not entry.is_dir():
                    continue
                try:
                    self._load_locked(entry.name)
                except ModelLoadError as e:
                    self.logger.error(
                        "Failed to load model",
                        model_id=entry.name,
                        error=e.description,
                    )
                    continue
                loaded += 1
                if self._default_model is None:
                    self._default_model = entry.name

            self.logger.info("Loaded models", count=loaded)

            if loaded == 0:
                self._register_placeholder()

            return loaded

    def load(self, model_id: str) -> LoadedModel:
        """Load a single model directory, replacing any existing entry."""
        with self._lock.write():
            model = self._load_locked(model_id)
            if self._default_model is None or self._default_is_placeholder():
                self._drop_placeholder()
                self._default_model = model_id
            return model

    def get(self, model_id: str | None = None) -> LoadedModel:
        with self._lock.read():
            resolved = model_id or self._default_model
            model = self._models.get(resolved) if resolved else None
            if model is None:
                raise ModelNotFoundError(resolved or "")
            return model

    def get_default(self) -> LoadedModel:
        return self.get(None)

    def list(self) -> list[ModelInfo]:
        with self._lock.read():
            return [self._models[key].info for key in sorted(self._models)]

    def health(self, model_id: str) -> ModelHealth:
        with self._lock.read():
            model = self._models.get(model_id)
            if model is None:
                raise ModelNotFoundError(model_id)
            return model.health()

    def status(self) -> ModelStatus:
        with self._lock.read():
            return ModelStatus(
                loaded=sum(1 for model in self._models.values() if model.available),
                total=len(self._models),
                default_model=self._default_model,
                models={
                    model_id: model.health()
                    for model_id, model in sorted(self._models.items())
                },
            )

    def record_outcome(self, model_id: str, elapsed_ms: float, success: bool) -> None:
        with self._lock.write():
            model = self._models.get(model_id)
            if model is None:
                return
            previous = model.status
            model.record(elapsed_ms, success)
            current = model.status
            error_rate = model.error_rate

        if current != previous:
            self.logger.warning(
                "Model health changed",
                model_id=model_id,
                previous=previous,
                current=current,
                error_rate=round(error_rate, 4),
            )

    def is_healthy(self, model_id: str) -> bool:
        with self._lock.read():
            model = self._models.get(model_id)
            return model is not None and model.status == "healthy"

    def reload(self, model_id: str) -> LoadedModel:
        """Drop and re-read a model; concurrent readers may briefly see it missing."""
        with self._lock.write():
            previous = self._models.pop(model_id, None)
            if previous is not None and previous.is_placeholder:
                self._register_placeholder()
                return self._models[model_id]
        existed = previous is not None
        if not existed and not (self.model_path / model_id).is_dir():
            raise ModelNotFoundError(model_id)

        with self._lock.write():
            try:
                model = self._load_locked(model_id)
            except ModelLoadError:
                if existed and self._default_model == model_id:
                    self._promote_next_default()
                raise
            if self._default_model is None or self._default_is_placeholder():
                self._drop_placeholder()
                self._default_model = model_id

        self.logger.info("Reloaded model", model_id=model_id)
        return model

    def unload(self, model_id: str) -> None:
        with self._lock.write():
            if self._models.pop(model_id, None) is None:
                raise ModelNotFoundError(model_id)
            if self._default_model == model_id:
                self._promote_next_default()

        self.logger.info("Unloaded model", model_id=model_id)

    def validate_for_prediction(self, model_id: str | None = None) -> LoadedModel:
        """Check that a model exists and is fit to serve predictions."""
        model = self.get(model_id)
        if not self.is_healthy(model.id):
            raise ModelUnavailableError(model.id, f"model {model.id} is not healthy")
        if not model.info.has_image_input:
            raise ModelUnavailableError(
                model.id, f"model {model.id} has invalid input shape"
            )
        if not model.info.classes:
            raise ModelUnavailableError(model.id, f"model {model.id} has no class labels")
        return model

    def _load_locked(self, model_id: str) -> LoadedModel:
        model_dir = self.model_path / model_id
        if not model_dir.is_dir():
            raise ModelLoadError(model_id, f"model directory not found: {model_dir}")

        try:
            info = self._read_metadata(model_dir, model_id)
        except (OSError, ValueError, ValidationError) as e:
            self.logger.warning(
                "Failed to load model metadata, using defaults",
                model_id=model_id,
                error=str(e),
            )
            info = self._default_metadata(model_id)

        if len(info.classes) != info.output_dim:
            raise ModelLoadError(
                model_id,
                f"class count {len(info.classes)} does not match output dimension "
                f"{info.output_dim}",
            )

        model = LoadedModel(info=info)
        self._models[model_id] = model
        self.logger.info(
            "Loaded model",
            model_id=model_id,
            name=info.name,
            version=info.version,
            classes=len(info.classes),
        )
        return model

    def _read_metadata(self, model_dir: Path, model_id: str) -> ModelInfo:
        raw = json.loads((model_dir / METADATA_FILENAME).read_text(encoding="utf-8"))
        if not isinstance(raw, dict):
            raise ValueError("metadata must be a JSON object")

        extra = raw.get("metadata") or {}
        if not isinstance(extra, dict):
            raise ValueError("metadata.metadata must be an object")

        # The directory name is the registry key
        raw.update(
            id=model_id,
            loaded_at=datetime.now(timezone.utc),
            metadata={str(key): str(value) for key, value in extra.items()},
        )
        return ModelInfo.model_validate(raw)

    def _default_metadata(self, model_id: str) -> ModelInfo:
        classes = default_classes()
        return ModelInfo(
            id=model_id,
            name=f"Model {model_id}",
            version=self.default_version,
            description="Image classification model",
            input_shape=list(DEFAULT_INPUT_SHAPE),
            output_shape=[len(classes)],
            classes=classes,
        )

    def _register_placeholder(self) -> None:
        classes = default_classes(PLACEHOLDER_CLASS_COUNT)
        info = ModelInfo(
            id=PLACEHOLDER_MODEL_ID,
            name="Dummy Model",
            version="1.0.0",
            description="Development dummy model for testing",
            input_shape=list(DEFAULT_INPUT_SHAPE),
            output_shape=[len(classes)],
            classes=classes,
            metadata={"type": "dummy"},
        )
        self._models[PLACEHOLDER_MODEL_ID] = LoadedModel(info=info, is_placeholder=True)
        self._default_model = PLACEHOLDER_MODEL_ID
        self.logger.info("Created dummy model for development")

    def _default_is_placeholder(self) -> bool:
        model = self._models.get(self._default_model or "")
        return model is not None and model.is_placeholder

    def _drop_placeholder(self) -> None:
        placeholder = self._models.get(PLACEHOLDER_MODEL_ID)
        if placeholder is not None and placeholder.is_placeholder:
            del self._models[PLACEHOLDER_MODEL_ID]

    def _promote_next_default(self) -> None:
        self._default_model = min(self._models) if self._models else None
