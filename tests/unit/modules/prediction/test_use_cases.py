"""Tests for the upload and prediction services."""

import pytest

from imagerec.api.core.exceptions.base import (
    DeadlineExceededError,
    ImageDecodeError,
    ImageValidationError,
    InferenceError,
    ModelNotFoundError,
)
from imagerec.api.core.messages import MessageCode
from imagerec.core.context import PredictionContext
from imagerec.modules.imaging import codec
from imagerec.modules.prediction.models import BatchItem, ImageMetadata
from tests.factories import make_image_bytes, write_model_dir


def _metadata() -> ImageMetadata:
    return ImageMetadata(filename="photo.png", size=100)


class TestImageService:
    def test_process_upload(self, image_service):
        data = make_image_bytes("PNG", size=(320, 240))

        upload = image_service.process_upload(data, "photo.png", "image/png", len(data))

        assert upload.metadata.filename == "photo.png"
        assert (upload.metadata.width, upload.metadata.height) == (320, 240)
        assert upload.metadata.format == "png"
        assert upload.metadata.content_type == "image/png"
        assert upload.metadata.size == len(data)
        assert codec.sniff_mime_type(upload.data) == "image/jpeg"
        assert codec.decode(upload.data).image.size == (224, 224)
        assert upload.tensor.shape == [1, 224, 224, 3]

    def test_rejects_unsupported_type(self, image_service):
        with pytest.raises(ImageValidationError) as exc_info:
            image_service.process_upload(b"GIF89a......", "x.gif", "image/gif")
        assert exc_info.value.message_code == MessageCode.UNSUPPORTED_FORMAT

    def test_valid_magic_with_corrupt_body_fails_decode(self, image_service):
        data = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64

        with pytest.raises(ImageDecodeError):
            image_service.process_upload(data, "x.png", "image/png")

    def test_expired_context_stops_before_decode(self, image_service):
        context = PredictionContext()
        context.cancel()

        with pytest.raises(DeadlineExceededError) as exc_info:
            image_service.process_upload(
                make_image_bytes(), "x.png", "image/png", context=context
            )
        assert exc_info.value.stage == "decode"


class TestPredict:
    def test_successful_prediction_is_stored_and_counted(
        self, prediction_service, registry, result_store
    ):
        result = prediction_service.predict(make_image_bytes("JPEG"), _metadata())

        assert result.model_info.id == "alpha"
        assert 1 <= len(result.predictions) <= 5
        confidences = [p.confidence for p in result.predictions]
        assert confidences == sorted(confidences, reverse=True)
        assert sum(p.probability for p in result.predictions) == pytest.approx(1.0)
        assert result.top_prediction == result.predictions[0]
        assert result.process_time_ms >= 0
        assert result_store.get(result.id) == result

        health = registry.health("alpha")
        assert health.predictions == 1
        assert health.errors == 0

    def test_prediction_is_deterministic(self, prediction_service):
        data = make_image_bytes("PNG", color=(10, 90, 200))

        first = prediction_service.predict(data, _metadata(), "beta")
        second = prediction_service.predict(data, _metadata(), "beta")

        assert first.id != second.id
        assert [p.class_name for p in first.predictions] == [
            p.class_name for p in second.predictions
        ]

    def test_top_k_is_capped_at_five(self, prediction_service):
        result = prediction_service.predict(
            make_image_bytes(), _metadata(), "beta", top_k=20
        )
        assert len(result.predictions) == 5

    def test_explicit_top_k(self, prediction_service):
        result = prediction_service.predict(
            make_image_bytes(), _metadata(), "beta", top_k=2
        )
        assert len(result.predictions) == 2

    def test_threshold_filter(self, prediction_service):
        result = prediction_service.predict(make_image_bytes(), _metadata(), "beta")

        assert result.above_threshold(0.0) == result.predictions
        assert result.above_threshold(1.01) == []

    def test_unknown_model_raises_without_recording(
        self, prediction_service, registry, result_store
    ):
        with pytest.raises(ModelNotFoundError):
            prediction_service.predict(make_image_bytes(), _metadata(), "ghost")

        assert registry.health("alpha").predictions == 0
        assert result_store.count() == 0

    def test_decode_failure_records_error_and_stores_nothing(
        self, prediction_service, registry, result_store
    ):
        with pytest.raises(ImageDecodeError):
            prediction_service.predict(b"not an image", _metadata())

        health = registry.health("alpha")
        assert health.predictions == 1
        assert health.errors == 1
        assert health.status == "unhealthy"
        assert result_store.count() == 0

    def test_engine_failure_is_recorded(
        self, prediction_service, registry, result_store
    ):
        registry.get("alpha").available = False

        with pytest.raises(InferenceError):
            prediction_service.predict(make_image_bytes(), _metadata())

        assert registry.health("alpha").errors == 1
        assert result_store.count() == 0

    def test_unexpected_engine_error_is_wrapped(
        self, prediction_service, registry, monkeypatch
    ):
        def explode(tensor, model):
            raise RuntimeError("boom")

        monkeypatch.setattr(prediction_service.engine, "infer", explode)

        with pytest.raises(InferenceError) as exc_info:
            prediction_service.predict(make_image_bytes(), _metadata())
        assert exc_info.value.message_code == MessageCode.PREDICTION_FAILED
        assert registry.health("alpha").errors == 1

    def test_cancelled_context_records_failure(self, prediction_service, registry):
        context = PredictionContext()
        context.cancel()

        with pytest.raises(DeadlineExceededError):
            prediction_service.predict(make_image_bytes(), _metadata(), context=context)

        assert registry.health("alpha").errors == 1

    def test_matching_upload_tensor_skips_decode(
        self, prediction_service, image_service, monkeypatch
    ):
        upload = image_service.process_upload(make_image_bytes(), "a.png", "image/png")

        def fail_decode(data):
            raise AssertionError("decode should not run")

        monkeypatch.setattr(codec, "decode", fail_decode)

        result = prediction_service.predict(
            b"unused", upload.metadata, "alpha", tensor=upload.tensor
        )
        assert result.model_info.id == "alpha"

    def test_mismatched_upload_tensor_is_rebuilt(
        self, prediction_service, image_service, registry
    ):
        write_model_dir(
            registry.model_path, "tiny", classes=["cat", "dog"], input_shape=[16, 16, 3]
        )
        registry.reload("tiny")
        upload = image_service.process_upload(make_image_bytes(), "a.png", "image/png")
        seen = {}
        original = prediction_service.engine.infer

        def spy(tensor, model):
            seen["size"] = (tensor.width, tensor.height)
            return original(tensor, model)

        prediction_service.engine.infer = spy

        prediction_service.predict(upload.data, upload.metadata, "tiny", tensor=upload.tensor)

        assert seen["size"] == (16, 16)

    def test_model_input_size_is_used(self, prediction_service, registry):
        write_model_dir(
            registry.model_path, "small", classes=["cat", "dog"], input_shape=[32, 48, 3]
        )
        registry.reload("small")
        seen = {}
        original = prediction_service.engine.infer

        def spy(tensor, model):
            seen["size"] = (tensor.width, tensor.height)
            return original(tensor, model)

        prediction_service.engine.infer = spy

        prediction_service.predict(make_image_bytes(), _metadata(), "small")

        assert seen["size"] == (48, 32)


class TestBatch:
    def test_partial_failure_is_reported_per_item(self, prediction_service):
        items = [
            BatchItem(id="0", filename="a.png", data=make_image_bytes(), content_type="image/png"),
            BatchItem(id="1", filename="b.txt", data=b"plain text", content_type="text/plain"),
        ]

        batch = prediction_service.predict_batch(items)

        assert set(batch.results) == {"0"}
        assert set(batch.errors) == {"1"}
        assert batch.errors["1"].message_code == MessageCode.UNSUPPORTED_FORMAT
        assert not batch.success
        assert batch.process_time_ms >= 0

    def test_all_succeed(self, prediction_service):
        items = [
            BatchItem(
                id=str(i),
                filename=f"{i}.jpg",
                data=make_image_bytes("JPEG", color=(i * 40, 10, 10)),
                content_type="image/jpeg",
            )
            for i in range(3)
        ]

        batch = prediction_service.predict_batch(items, model_id="beta")

        assert batch.success
        assert len(batch.results) == 3
        assert all(r.model_info.id == "beta" for r in batch.results.values())

    def test_cancellation_aborts_batch(self, prediction_service):
        context = PredictionContext()
        context.cancel()
        items = [BatchItem(id="0", filename="a.png", data=make_image_bytes(), content_type="image/png")]

        with pytest.raises(DeadlineExceededError):
            prediction_service.predict_batch(items, context=context)


def test_reload_model_via_service(prediction_service):
    info = prediction_service.reload_model("alpha")

    assert info.id == "alpha"
    assert prediction_service.is_ready("alpha")
    assert not prediction_service.is_ready("ghost")


def test_sweep_results_via_service(prediction_service):
    prediction_service.predict(make_image_bytes(), _metadata())

    assert prediction_service.results_count() == 1
    assert prediction_service.sweep_results(3600) == 0
    assert prediction_service.sweep_results(-1) == 1
