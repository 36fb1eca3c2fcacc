"""Tests for the model registry and health tiers."""

import pytest

from imagerec.api.core.exceptions.base import (
    ModelLoadError,
    ModelNotFoundError,
    ModelUnavailableError,
)
from imagerec.modules.registry.labels import DEFAULT_CLASSES, describe
from imagerec.modules.registry.models import health_tier
from imagerec.modules.registry.registry import ModelRegistry
from tests.factories import write_model_dir


@pytest.mark.parametrize(
    "errors,predictions,expected",
    [
        (0, 0, "healthy"),
        (1, 10, "healthy"),
        (2, 10, "degraded"),
        (5, 10, "degraded"),
        (6, 10, "unhealthy"),
        (10, 10, "unhealthy"),
    ],
)
def test_health_tier_boundaries(errors, predictions, expected):
    assert health_tier(errors, predictions) == expected


def test_describe_falls_back_to_generic_text():
    assert describe("cat") == "A small domestic feline mammal"
    assert describe("ostrich") == "A large flightless bird"
    assert describe("lamp") == "A lamp object or entity"


class TestLoadAll:
    def test_loads_models_in_directory_order(self, registry: ModelRegistry):
        assert [info.id for info in registry.list()] == ["alpha", "beta"]
        assert registry.default_model_id == "alpha"
        assert registry.get().id == "alpha"

    def test_metadata_is_read(self, registry: ModelRegistry):
        info = registry.get("alpha").info

        assert info.name == "Alpha"
        assert info.version == "2.0.0"
        assert info.classes == ["cat", "dog", "bird", "car", "truck"]
        assert info.output_dim == 5

    def test_missing_metadata_falls_back_to_defaults(self, registry: ModelRegistry):
        info = registry.get("beta").info

        assert info.name == "Model beta"
        assert info.version == "latest"
        assert info.description == "Image classification model"
        assert info.input_shape == [224, 224, 3]
        assert info.classes == list(DEFAULT_CLASSES)
        assert len(info.classes) == 53
        assert info.output_dim == len(info.classes)

    def test_unparseable_metadata_falls_back_to_defaults(self, tmp_path):
        write_model_dir(tmp_path, "broken", raw="{not json")
        registry = ModelRegistry(tmp_path)
        registry.load_all()

        assert registry.get("broken").info.name == "Model broken"

    def test_directory_name_wins_over_metadata_id(self, tmp_path):
        write_model_dir(
            tmp_path,
            "folder",
            metadata={
                "id": "other",
                "name": "Renamed",
                "version": "1",
                "input_shape": [224, 224, 3],
                "output_shape": [1],
                "classes": ["cat"],
                "metadata": {"layers": 50},
            },
        )
        registry = ModelRegistry(tmp_path)
        registry.load_all()

        info = registry.get("folder").info
        assert info.id == "folder"
        assert info.metadata == {"layers": "50"}

    def test_class_count_mismatch_skips_model(self, tmp_path):
        write_model_dir(tmp_path, "aaa", classes=["cat", "dog"], output_shape=[1, 1000])
        write_model_dir(tmp_path, "bbb", classes=["cat"])
        registry = ModelRegistry(tmp_path)

        assert registry.load_all() == 1
        assert [info.id for info in registry.list()] == ["bbb"]
        assert registry.default_model_id == "bbb"
        with pytest.raises(ModelNotFoundError):
            registry.get("aaa")

    def test_files_in_model_directory_are_ignored(self, tmp_path):
        (tmp_path / "README.txt").write_text("not a model")
        write_model_dir(tmp_path, "only", classes=["cat"])
        registry = ModelRegistry(tmp_path)

        assert registry.load_all() == 1

    def test_missing_directory_registers_placeholder(self, tmp_path):
        registry = ModelRegistry(tmp_path / "does-not-exist")

        assert registry.load_all() == 0

        model = registry.get()
        assert model.id == "dummy"
        assert model.is_placeholder
        assert model.info.name == "Dummy Model"
        assert model.info.version == "1.0.0"
        assert model.info.metadata == {"type": "dummy"}
        assert model.info.classes == list(DEFAULT_CLASSES[:50])
        assert registry.is_placeholder_only

    def test_unreadable_directory_registers_placeholder(self, model_dir, monkeypatch):
        registry = ModelRegistry(model_dir)

        def denied(self):
            raise PermissionError(13, "Permission denied", str(self))

        monkeypatch.setattr(type(model_dir), "iterdir", denied)

        assert registry.load_all() == 0
        assert registry.default_model_id == "dummy"
        assert registry.is_placeholder_only

    def test_all_failed_registers_placeholder(self, tmp_path):
        write_model_dir(tmp_path, "bad", classes=["cat"], output_shape=[3])
        registry = ModelRegistry(tmp_path)
        registry.load_all()

        assert registry.default_model_id == "dummy"

    def test_reloading_everything_resets_state(self, registry: ModelRegistry):
        registry.record_outcome("alpha", 5.0, success=False)
        registry.load_all()

        assert registry.health("alpha").errors == 0


class TestLookup:
    def test_unknown_model_raises(self, registry: ModelRegistry):
        with pytest.raises(ModelNotFoundError) as exc_info:
            registry.get("nope")
        assert exc_info.value.status_code == 404

    def test_empty_id_means_default(self, registry: ModelRegistry):
        assert registry.get("").id == "alpha"
        assert registry.get_default().id == "alpha"

    def test_get_default_follows_unload(self, registry: ModelRegistry):
        assert registry.get_default() is registry.get("alpha")

        registry.unload("alpha")
        assert registry.get_default().id == "beta"

        registry.unload("beta")
        with pytest.raises(ModelNotFoundError):
            registry.get_default()

    def test_status_counts(self, registry: ModelRegistry):
        status = registry.status()

        assert status.loaded == 2
        assert status.total == 2
        assert status.default_model == "alpha"
        assert set(status.models) == {"alpha", "beta"}


class TestRecordOutcome:
    def test_success_updates_average(self, registry: ModelRegistry):
        registry.record_outcome("alpha", 10.0, success=True)
        registry.record_outcome("alpha", 30.0, success=True)

        health = registry.health("alpha")
        assert health.predictions == 2
        assert health.avg_time_ms == pytest.approx(20.0)
        assert health.errors == 0
        assert health.last_used is not None
        assert health.status == "healthy"

    def test_failures_move_through_tiers(self, registry: ModelRegistry):
        for _ in range(9):
            registry.record_outcome("alpha", 1.0, success=True)
        registry.record_outcome("alpha", 1.0, success=False)
        assert registry.health("alpha").status == "healthy"

        registry.record_outcome("alpha", 1.0, success=False)
        assert registry.health("alpha").status == "degraded"
        assert not registry.is_healthy("alpha")

        for _ in range(10):
            registry.record_outcome("alpha", 1.0, success=False)
        assert registry.health("alpha").status == "unhealthy"

    def test_unhealthy_model_recovers_after_successes(self, registry: ModelRegistry):
        for _ in range(6):
            registry.record_outcome("alpha", 1.0, success=False)
        assert registry.health("alpha").status == "unhealthy"

        for _ in range(24):
            registry.record_outcome("alpha", 1.0, success=True)
        assert registry.health("alpha").status == "degraded"

        for _ in range(30):
            registry.record_outcome("alpha", 1.0, success=True)

        health = registry.health("alpha")
        assert health.error_rate == pytest.approx(0.1)
        assert health.status == "healthy"
        assert registry.is_healthy("alpha")
        registry.validate_for_prediction("alpha")

    def test_failure_counts_time_but_keeps_average(self, registry: ModelRegistry):
        registry.record_outcome("alpha", 10.0, success=True)
        registry.record_outcome("alpha", 50.0, success=False)

        model = registry.get("alpha")
        assert model.total_time_ms == pytest.approx(60.0)
        assert model.avg_time_ms == pytest.approx(10.0)
        assert registry.health("alpha").error_rate == pytest.approx(0.5)

    def test_unknown_model_is_ignored(self, registry: ModelRegistry):
        registry.record_outcome("ghost", 1.0, success=False)
        assert "ghost" not in registry.status().models

    def test_snapshot_is_not_live(self, registry: ModelRegistry):
        before = registry.health("alpha")
        registry.record_outcome("alpha", 1.0, success=True)

        assert before.predictions == 0


class TestReloadAndUnload:
    def test_reload_resets_counters_and_rereads_metadata(self, registry, model_dir):
        registry.record_outcome("alpha", 1.0, success=False)
        write_model_dir(model_dir, "alpha", classes=["cat", "dog"], name="Alpha v3")

        model = registry.reload("alpha")

        assert model.info.name == "Alpha v3"
        assert registry.health("alpha").errors == 0

    def test_reload_unknown_model_raises_not_found(self, registry):
        with pytest.raises(ModelNotFoundError):
            registry.reload("ghost")

    def test_reload_with_mismatched_metadata_fails_loudly(self, registry, model_dir):
        write_model_dir(model_dir, "alpha", classes=["cat", "dog"], output_shape=[7])

        with pytest.raises(ModelLoadError):
            registry.reload("alpha")

        with pytest.raises(ModelNotFoundError):
            registry.get("alpha")
        assert registry.default_model_id == "beta"

    def test_reload_picks_up_new_directory(self, registry, model_dir):
        write_model_dir(model_dir, "gamma", classes=["cat"])

        registry.reload("gamma")

        assert registry.get("gamma").info.classes == ["cat"]

    def test_reload_placeholder(self, tmp_path):
        registry = ModelRegistry(tmp_path / "missing")
        registry.load_all()

        assert registry.reload("dummy").is_placeholder

    def test_unload_default_promotes_next(self, registry):
        registry.unload("alpha")

        assert registry.default_model_id == "beta"
        with pytest.raises(ModelNotFoundError):
            registry.unload("alpha")

    def test_load_replaces_placeholder_default(self, tmp_path):
        registry = ModelRegistry(tmp_path)
        registry.load_all()
        assert registry.default_model_id == "dummy"

        write_model_dir(tmp_path, "fresh", classes=["cat"])
        registry.load("fresh")

        assert registry.default_model_id == "fresh"
        assert [info.id for info in registry.list()] == ["fresh"]


class TestValidateForPrediction:
    def test_healthy_model_passes(self, registry):
        assert registry.validate_for_prediction("alpha").id == "alpha"

    def test_unhealthy_model_is_rejected(self, registry):
        registry.record_outcome("alpha", 1.0, success=False)

        with pytest.raises(ModelUnavailableError) as exc_info:
            registry.validate_for_prediction("alpha")
        assert exc_info.value.status_code == 503

    def test_non_image_input_shape_is_rejected(self, tmp_path):
        write_model_dir(tmp_path, "flat", classes=["cat"], input_shape=[150528])
        registry = ModelRegistry(tmp_path)
        registry.load_all()

        with pytest.raises(ModelUnavailableError):
            registry.validate_for_prediction("flat")

    def test_batched_input_shape_is_accepted(self, tmp_path):
        write_model_dir(tmp_path, "nhwc", classes=["cat"], input_shape=[1, 128, 96, 3])
        registry = ModelRegistry(tmp_path)
        registry.load_all()

        model = registry.validate_for_prediction("nhwc")
        assert model.info.input_size == (96, 128)

    def test_model_without_classes_is_rejected(self, tmp_path):
        write_model_dir(tmp_path, "empty", classes=[], output_shape=[0])
        registry = ModelRegistry(tmp_path)
        registry.load_all()

        with pytest.raises(ModelUnavailableError):
            registry.validate_for_prediction("empty")
