"""Unit tests for configuration loading."""

import json

import pytest
from config import (
    Config,
    LoggingConfig,
    ServerConfig,
    SimulationConfig,
    SurfaceConfig,
    load_config,
)
from core.errors import ConfigError
from simulation.geometry import Point
from simulation.world import ClampMode, Surface


def write(tmp_path, data):
    path = tmp_path / "config.json"
    path.write_text(json.dumps(data) if not isinstance(data, str) else data)
    return path


SURFACE = {"width": 12.0, "height": 6.0, "speaker": {"x": 1.0, "y": 2.0}}


class TestSurfaceConfig:
    """Tests for the surface section."""

    def test_from_dict(self):
        config = SurfaceConfig.from_dict(SURFACE)
        assert config.width == 12.0
        assert config.speaker == Point(1.0, 2.0)

    @pytest.mark.parametrize("field", ["width", "height", "speaker"])
    def test_missing_field(self, field):
        data = {k: v for k, v in SURFACE.items() if k != field}
        with pytest.raises(ConfigError) as exc_info:
            SurfaceConfig.from_dict(data)
        assert exc_info.value.context["field"] == f"surface.{field}"

    def test_bad_speaker(self):
        with pytest.raises(ConfigError):
            SurfaceConfig.from_dict({**SURFACE, "speaker": [1, 2]})

    def test_degenerate_surface(self):
        with pytest.raises(ConfigError) as exc_info:
            SurfaceConfig.from_dict({**SURFACE, "height": 0})
        assert "positive" in str(exc_info.value)

    def test_to_surface(self):
        surface = SurfaceConfig.from_dict(SURFACE).to_surface()
        assert isinstance(surface, Surface)
        assert (surface.width, surface.height) == (12.0, 6.0)


class TestSimulationConfig:
    """Tests for SimulationConfig class."""

    def test_default_values(self):
        config = SimulationConfig()
        assert config.tick_interval == pytest.approx(1 / 30)
        assert config.clamp_mode == ClampMode.LEGACY
        assert config.seed is None

    def test_unknown_clamp_mode(self):
        with pytest.raises(ConfigError):
            SimulationConfig(clamp_mode="diagonal")

    @pytest.mark.parametrize("kwargs", [{"density": -1}, {"density": 2.5}, {"heatmap_width": 0},
                                        {"heatmap_height": "64"}, {"tick_interval": -0.1},
                                        {"tick_interval": 0}, {"seed": "abc"}, {"seed": 1.5}])
    def test_invalid_numbers(self, kwargs):
        with pytest.raises(ConfigError) as exc_info:
            SimulationConfig(**kwargs)
        assert exc_info.value.context["field"] == f"simulation.{next(iter(kwargs))}"

    @pytest.mark.parametrize("seed", [None, 0, 7])
    def test_valid_seeds(self, seed):
        assert SimulationConfig(seed=seed).seed == seed


class TestServerAndLoggingConfig:

    def test_server_defaults(self):
        config = ServerConfig()
        assert config.host == "127.0.0.1"
        assert config.port == 8080

    def test_logging_defaults(self):
        config = LoggingConfig()
        assert config.level == "INFO"
        assert config.file == "logs/frames.log"
        assert config.crash_file == "logs/crash.log"
        assert config.frame_sample_every == 30


class TestConfig:
    """Tests for main Config class."""

    def test_default_config(self):
        config = Config()
        assert isinstance(config.surface, SurfaceConfig)
        assert isinstance(config.simulation, SimulationConfig)
        assert isinstance(config.server, ServerConfig)
        assert isinstance(config.logging, LoggingConfig)

    def test_from_dict(self):
        data = {
            "surface": SURFACE,
            "simulation": {"density": 3, "clamp_mode": "corrected"},
            "server": {"port": 9000},
            "logging": {"level": "DEBUG"},
        }
        config = Config.from_dict(data)
        assert config.surface.height == 6.0
        assert config.simulation.density == 3
        assert config.simulation.clamp_mode == ClampMode.CORRECTED
        assert config.server.port == 9000
        assert config.logging.level == "DEBUG"

    def test_surface_required(self):
        with pytest.raises(ConfigError):
            Config.from_dict({"server": {"port": 9000}})

    def test_unknown_key_is_malformed(self):
        with pytest.raises(ConfigError):
            Config.from_dict({"surface": SURFACE, "simulation": {"particles": 5}})


class TestLoadConfig:
    """Tests for load_config function."""

    def test_load_bundled_config(self):
        config = load_config()
        assert config.surface.width == 10.0
        assert config.surface.height == 8.0
        assert config.simulation.density == 4

    def test_load_config_missing_file(self, tmp_path):
        config = load_config(tmp_path / "nonexistent.json")
        assert isinstance(config, Config)
        assert config.simulation.tick_interval == pytest.approx(1 / 30)

    def test_load_config_from_path(self, tmp_path):
        config = load_config(write(tmp_path, {"surface": SURFACE}))
        assert config.surface.width == 12.0

    def test_invalid_json(self, tmp_path):
        path = write(tmp_path, "{not json")
        with pytest.raises(ConfigError) as exc_info:
            load_config(path)
        assert exc_info.value.context["path"] == str(path)

    def test_non_object_root(self, tmp_path):
        with pytest.raises(ConfigError):
            load_config(write(tmp_path, [1, 2, 3]))

    def test_missing_field_reports_path(self, tmp_path):
        path = write(tmp_path, {"surface": {"width": 3.0, "height": 2.0}})
        with pytest.raises(ConfigError) as exc_info:
            load_config(path)
        assert exc_info.value.context["path"] == str(path)
