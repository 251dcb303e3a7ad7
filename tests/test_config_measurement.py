"""
Tests for estimator configuration and measurement packages
===========================================================
pytest tests/test_config_measurement.py -v
"""

import dataclasses

import numpy as np
import pytest
from numpy.testing import assert_allclose
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from ctrv_ukf.config import UKFConfig, load_config
from ctrv_ukf.errors import UnknownSensorError
from ctrv_ukf.measurement import (
    SensorType, MeasurementPackage, MEASUREMENT_DIM,
    laser_measurement, radar_measurement, make_measurement,
)


# =============================================================================
# CONFIG
# =============================================================================

class TestUKFConfig:
    def test_defaults(self):
        cfg = UKFConfig()
        assert cfg.std_a == 1.0
        assert cfg.std_yawdd == 1.0
        assert cfg.std_laspx == pytest.approx(0.15)
        assert cfg.std_radphi == pytest.approx(0.03)
        assert cfg.use_laser is True
        assert cfg.use_radar is True
        assert cfg.yaw_rate_eps == pytest.approx(1e-3)
        assert cfg.range_floor == pytest.approx(1e-3)

    def test_noise_matrices(self):
        cfg = UKFConfig(std_laspx=0.1, std_laspy=0.2, std_radr=0.5, std_radphi=0.01, std_radrd=0.4)
        assert_allclose(cfg.R_laser, np.diag([0.01, 0.04]))
        assert_allclose(cfg.R_radar, np.diag([0.25, 1e-4, 0.16]))

    def test_frozen(self):
        cfg = UKFConfig()
        with pytest.raises(dataclasses.FrozenInstanceError):
            cfg.std_a = 2.0

    @pytest.mark.parametrize("field_name", ["std_a", "std_yawdd", "std_laspx", "std_radr", "range_floor"])
    def test_rejects_non_positive(self, field_name):
        with pytest.raises(ValueError, match=field_name):
            UKFConfig(**{field_name: 0.0})

    def test_rejects_nan(self):
        with pytest.raises(ValueError):
            UKFConfig(std_radrd=float("nan"))

    def test_from_dict(self):
        cfg = UKFConfig.from_dict({"std_a": 0.7, "use_radar": False})
        assert cfg.std_a == 0.7
        assert cfg.use_radar is False
        assert UKFConfig.from_dict(None) == UKFConfig()

    def test_from_dict_unknown_key(self):
        with pytest.raises(ValueError, match="std_b"):
            UKFConfig.from_dict({"std_b": 1.0})

    def test_to_dict_roundtrip(self):
        cfg = UKFConfig(std_a=0.3)
        assert UKFConfig.from_dict(cfg.to_dict()) == cfg


class TestLoadConfig:
    def test_top_level_mapping(self, tmp_path):
        path = tmp_path / "ukf.yaml"
        path.write_text("std_a: 0.8\nstd_yawdd: 0.55\nuse_laser: false\n")
        cfg = load_config(str(path))
        assert cfg.std_a == pytest.approx(0.8)
        assert cfg.std_yawdd == pytest.approx(0.55)
        assert cfg.use_laser is False

    def test_nested_under_ukf_key(self, tmp_path):
        path = tmp_path / "system.yaml"
        path.write_text("ukf:\n  std_radr: 0.25\n")
        assert load_config(str(path)).std_radr == pytest.approx(0.25)

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_config(str(path)) == UKFConfig()

    def test_non_mapping_rejected(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- 1\n- 2\n")
        with pytest.raises(ValueError, match="mapping"):
            load_config(str(path))


# =============================================================================
# MEASUREMENT PACKAGES
# =============================================================================

class TestMeasurementPackage:
    def test_laser(self):
        m = laser_measurement(2.0, 3.0, 1477010443000000)
        assert m.sensor_type is SensorType.LASER
        assert_allclose(m.z, [2.0, 3.0])
        assert m.timestamp == 1477010443000000
        assert m.timestamp_s == pytest.approx(1477010443.0)

    def test_radar(self):
        m = radar_measurement(5.0, 0.1, -0.3, 10)
        assert m.sensor_type is SensorType.RADAR
        assert m.raw_measurements.shape == (3,)

    def test_dimensions(self):
        assert MEASUREMENT_DIM[SensorType.LASER] == 2
        assert MEASUREMENT_DIM[SensorType.RADAR] == 3
        assert set(MEASUREMENT_DIM) == set(SensorType)

    def test_wrong_length_rejected(self):
        with pytest.raises(UnknownSensorError):
            MeasurementPackage(SensorType.LASER, np.array([1.0, 2.0, 3.0]), 0)
        with pytest.raises(UnknownSensorError):
            MeasurementPackage(SensorType.RADAR, np.array([1.0, 2.0]), 0)

    def test_untyped_sensor_rejected(self):
        with pytest.raises(UnknownSensorError):
            MeasurementPackage("laser", np.array([1.0, 2.0]), 0)

    def test_non_finite_rejected(self):
        with pytest.raises(ValueError):
            laser_measurement(np.nan, 1.0, 0)

    def test_fractional_timestamp_rejected(self):
        with pytest.raises(ValueError, match="microseconds"):
            laser_measurement(1.0, 1.0, 1.9)

    def test_integral_timestamp_accepted(self):
        assert laser_measurement(1.0, 1.0, np.int64(7)).timestamp == 7
        assert type(laser_measurement(1.0, 1.0, 7.0).timestamp) is int

    def test_immutable(self):
        m = laser_measurement(1.0, 2.0, 0)
        with pytest.raises(ValueError):
            m.raw_measurements[0] = 5.0
        with pytest.raises(dataclasses.FrozenInstanceError):
            m.timestamp = 5

    def test_source_array_copied(self):
        raw = np.array([1.0, 2.0])
        m = MeasurementPackage(SensorType.LASER, raw, 0)
        raw[0] = 99.0
        assert m.z[0] == 1.0


class TestSensorTags:
    @pytest.mark.parametrize("tag,expected", [
        ("L", SensorType.LASER), ("lidar", SensorType.LASER), ("laser", SensorType.LASER),
        ("R", SensorType.RADAR), ("radar", SensorType.RADAR), (SensorType.RADAR, SensorType.RADAR),
    ])
    def test_known_tags(self, tag, expected):
        assert SensorType.from_tag(tag) is expected

    def test_unknown_tag(self):
        with pytest.raises(UnknownSensorError):
            SensorType.from_tag("sonar")

    def test_make_measurement(self):
        m = make_measurement("R", [8.46, 0.0244, -3.04], 1477010443050000)
        assert m.sensor_type is SensorType.RADAR
        assert m.z[0] == pytest.approx(8.46)

    def test_unknown_sensor_is_value_error(self):
        # Callers catching ValueError still see malformed packages
        with pytest.raises(ValueError):
            make_measurement("X", [1.0, 2.0], 0)
