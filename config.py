import json
from pathlib import Path

from core.errors import ConfigError, SurfaceError
from simulation.geometry import Point
from simulation.world import ClampMode, Surface

_DEFAULT_CONFIG = Path(__file__).parent / "config.json"


class SurfaceConfig:
    __slots__ = ("width", "height", "speaker")

    def __init__(self, width=10.0, height=8.0, speaker=None):
        self.width = width
        self.height = height
        self.speaker = speaker or Point(0, 0)

    @classmethod
    def from_dict(cls, d):
        for field in ("width", "height", "speaker"):
            if field not in d:
                raise ConfigError(f"surface.{field} is required", field=f"surface.{field}")
        speaker = d["speaker"]
        try:
            speaker = Point.from_dict(speaker)
        except (KeyError, TypeError, ValueError) as exc:
            raise ConfigError(f"surface.speaker must be {{\"x\": .., \"y\": ..}}, got {speaker!r}",
                              field="surface.speaker", cause=exc) from exc
        config = cls(d["width"], d["height"], speaker)
        config.to_surface()
        return config

    def to_surface(self):
        try:
            return Surface(self.width, self.height, self.speaker)
        except SurfaceError as exc:
            raise ConfigError(f"invalid surface: {exc.message}", field="surface", cause=exc) from exc


def _check_number(field, value, minimum, types=int, strict=False):
    bound = ">" if strict else ">="
    if (isinstance(value, bool) or not isinstance(value, types)
            or value < minimum or (strict and value == minimum)):
        raise ConfigError(f"simulation.{field} must be a number {bound} {minimum}, got {value!r}",
                          field=f"simulation.{field}")


class SimulationConfig:
    __slots__ = ("tick_interval", "density", "heatmap_width", "heatmap_height", "clamp_mode", "seed")

    def __init__(self, tick_interval=1 / 30, density=4, heatmap_width=256, heatmap_height=200,
                 clamp_mode=ClampMode.LEGACY, seed=None):
        if clamp_mode not in ClampMode.ALL:
            raise ConfigError(f"simulation.clamp_mode must be one of {ClampMode.ALL}, got {clamp_mode!r}",
                              field="simulation.clamp_mode")
        _check_number("tick_interval", tick_interval, 0, (int, float), strict=True)
        _check_number("density", density, 0)
        _check_number("heatmap_width", heatmap_width, 1)
        _check_number("heatmap_height", heatmap_height, 1)
        if seed is not None and (isinstance(seed, bool) or not isinstance(seed, int)):
            raise ConfigError(f"simulation.seed must be an integer or null, got {seed!r}",
                              field="simulation.seed")
        self.tick_interval = tick_interval
        self.density = density
        self.heatmap_width = heatmap_width
        self.heatmap_height = heatmap_height
        self.clamp_mode = clamp_mode
        self.seed = seed


class ServerConfig:
    __slots__ = ("host", "port")

    def __init__(self, host="127.0.0.1", port=8080):
        self.host = host
        self.port = port


class LoggingConfig:
    __slots__ = ("level", "file", "crash_file", "frame_sample_every")

    def __init__(self, level="INFO", file="logs/frames.log", crash_file="logs/crash.log",
                 frame_sample_every=30):
        self.level = level
        self.file = file
        self.crash_file = crash_file
        # one frame record per N ticks in the frame log
        self.frame_sample_every = frame_sample_every


class Config:
    __slots__ = ("surface", "simulation", "server", "logging")

    def __init__(self, surface=None, simulation=None, server=None, logging=None):
        self.surface = surface or SurfaceConfig()
        self.simulation = simulation or SimulationConfig()
        self.server = server or ServerConfig()
        self.logging = logging or LoggingConfig()

    @classmethod
    def from_dict(cls, d):
        if "surface" not in d:
            raise ConfigError("surface section is required", field="surface")
        try:
            return cls(
                SurfaceConfig.from_dict(d["surface"]),
                SimulationConfig(**d.get("simulation", {})),
                ServerConfig(**d.get("server", {})),
                LoggingConfig(**d.get("logging", {})),
            )
        except TypeError as exc:
            raise ConfigError(f"malformed config: {exc}", cause=exc) from exc


def load_config(path=None):
    """Read the JSON config. A missing file gives the defaults; a broken one raises ConfigError."""
    config_path = Path(path) if path else _DEFAULT_CONFIG

    if not config_path.exists():
        return Config()

    try:
        with open(config_path) as file:
            data = json.load(file)
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigError(f"cannot read config: {exc}", path=config_path, cause=exc) from exc
    if not isinstance(data, dict):
        raise ConfigError("config root must be an object", path=config_path)
    try:
        return Config.from_dict(data)
    except ConfigError as exc:
        exc.context.setdefault("path", str(config_path))
        raise
