"""
Tests for scan parameter validation and the parameter store
"""
import json
import math
import threading

import pytest
from pydantic import ValidationError

from cloudscan.modules.scan.errors import ConfigurationInvalid
from cloudscan.modules.scan.parameters import (
    ParameterStore, ScanParameters, build_parameters, load_parameters
)


class TestScanParameters:
    def test_defaults(self):
        params = ScanParameters()

        assert params.min_height == 0.10
        assert params.max_height == 0.15
        assert params.angle_min == -math.pi / 2
        assert params.angle_max == math.pi / 2
        assert params.angle_increment == math.pi / 360.0
        assert params.range_min == 0.45
        assert params.range_max == 10.0
        assert params.output_frame_id == "kinect_depth_frame"
        assert params.ref_frame_id == "kinect_link"
        assert params.transform_timeout == 1.0

    def test_derived_values(self):
        params = ScanParameters(range_min=0.5, range_max=4.0)

        assert params.range_min_sq == 0.25
        assert params.sentinel == 5.0

    def test_bin_count_exact_span(self):
        params = ScanParameters(angle_min=0.0, angle_max=1.0, angle_increment=0.25)
        assert params.bin_count == 4

    def test_bin_count_rounds_up(self):
        params = ScanParameters(angle_min=0.0, angle_max=1.1, angle_increment=0.25)
        assert params.bin_count == 5

    def test_default_bin_count(self):
        params = ScanParameters()
        expected = math.ceil((params.angle_max - params.angle_min) / params.angle_increment)
        assert params.bin_count == expected
        assert params.bin_count in (360, 361)

    def test_frozen(self):
        params = ScanParameters()
        with pytest.raises(ValidationError):
            params.min_height = 1.0


class TestBuildParameters:
    def test_valid_mapping(self):
        params = build_parameters({"min_height": 0.0, "max_height": 0.5})
        assert params.max_height == 0.5

    @pytest.mark.parametrize("overrides, fragment", [
        ({"angle_increment": 0.0}, "angle_increment"),
        ({"angle_increment": -0.01}, "angle_increment"),
        ({"angle_min": 1.0, "angle_max": 1.0}, "angle_max"),
        ({"range_min": -0.1}, "range_min"),
        ({"range_min": 5.0, "range_max": 5.0}, "range_max"),
        ({"min_height": 0.3, "max_height": 0.2}, "max_height"),
        ({"transform_timeout": 0.0}, "transform_timeout"),
        ({"range_max": float("inf")}, "finite"),
        ({"ref_frame_id": ""}, "non-empty"),
        ({"ref_frame_id": "laser", "output_frame_id": "/laser"}, "must differ"),
    ])
    def test_invariant_violations(self, overrides, fragment):
        with pytest.raises(ConfigurationInvalid) as exc_info:
            build_parameters(overrides)
        assert fragment in str(exc_info.value)

    def test_unknown_field_rejected(self):
        with pytest.raises(ConfigurationInvalid) as exc_info:
            build_parameters({"angle_step": 0.1})
        assert any("angle_step" in err for err in exc_info.value.errors)

    def test_wrong_type_rejected(self):
        with pytest.raises(ConfigurationInvalid):
            build_parameters({"range_max": "far"})

    def test_error_messages_are_readable(self):
        with pytest.raises(ConfigurationInvalid) as exc_info:
            build_parameters({"angle_increment": 0.0})
        assert not any(err.startswith("Value error") for err in exc_info.value.errors)


class TestLoadParameters:
    def test_load_from_json(self, tmp_path):
        path = tmp_path / "params.json"
        path.write_text(json.dumps({"min_height": -0.2, "max_height": 0.2, "ref_frame_id": "base_link"}))

        params = load_parameters(str(path))

        assert params.min_height == -0.2
        assert params.ref_frame_id == "base_link"
        assert params.range_max == 10.0

    def test_load_rejects_non_object(self, tmp_path):
        path = tmp_path / "params.json"
        path.write_text("[1, 2, 3]")

        with pytest.raises(ConfigurationInvalid):
            load_parameters(str(path))


class TestParameterStore:
    def test_replace(self):
        store = ParameterStore()
        store.replace({"range_max": 4.0})

        assert store.snapshot().range_max == 4.0

    def test_replace_invalid_keeps_previous(self):
        store = ParameterStore()
        before = store.snapshot()

        with pytest.raises(ConfigurationInvalid):
            store.replace({"angle_increment": 0.0})

        assert store.snapshot() is before

    def test_replace_is_whole_unit(self):
        """Test fields missing from a replacement fall back to defaults"""
        store = ParameterStore()
        store.replace({"range_max": 4.0})
        store.replace({"range_min": 1.0})

        assert store.snapshot().range_max == 10.0
        assert store.snapshot().range_min == 1.0

    def test_update_merges(self):
        store = ParameterStore()
        store.replace({"range_max": 4.0})
        store.update(range_min=1.0)

        assert store.snapshot().range_max == 4.0
        assert store.snapshot().range_min == 1.0

    def test_update_invalid_keeps_previous(self):
        store = ParameterStore()
        before = store.snapshot()

        with pytest.raises(ConfigurationInvalid):
            store.update(range_min=20.0)

        assert store.snapshot() is before

    def test_snapshot_unaffected_by_later_update(self):
        store = ParameterStore()
        snapshot = store.snapshot()
        store.update(max_height=1.0)

        assert snapshot.max_height == 0.15
        assert store.snapshot().max_height == 1.0

    def test_concurrent_updates_stay_consistent(self):
        """Test readers never observe a range_min/range_max pair from different writes"""
        store = ParameterStore()
        seen = []

        def writer(i):
            value = 1.0 + i
            store.replace({"range_min": value, "range_max": value + 1.0})

        def reader():
            for _ in range(200):
                seen.append(store.snapshot())

        threads = [threading.Thread(target=writer, args=(i,)) for i in range(20)]
        threads.append(threading.Thread(target=reader))
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        for params in seen:
            assert params.range_max > params.range_min
            assert params.range_min_sq == params.range_min * params.range_min
