"""Global configuration data structures and loading.

Provides immutable config data loaded once from <carti home>/config.toml at
the CLI entry point.
"""

import tomllib
from abc import ABC, abstractmethod
from dataclasses import dataclass, fields, replace
from pathlib import Path

import tomlkit

from carti.core.paths import CONFIG_FILE

DEFAULT_BUILD_IMAGE = "cartesi/playground:0.1.1"


@dataclass(frozen=True)
class CartiConfig:
    """Immutable global configuration.

    Attributes:
        build_image: Container image used by `machine build`
        s3_endpoint_url: Optional endpoint for S3-compatible storage
    """

    build_image: str = DEFAULT_BUILD_IMAGE
    s3_endpoint_url: str | None = None

    @staticmethod
    def keys() -> list[str]:
        return [f.name for f in fields(CartiConfig)]

    def with_value(self, key: str, value: str) -> "CartiConfig":
        """Return a copy with one key set from its string form.

        Raises:
            ValueError: If key is not a config key
        """
        if key not in CartiConfig.keys():
            raise ValueError(f"Unknown config key: {key} (known: {', '.join(CartiConfig.keys())})")
        return replace(self, **{key: value})


class ConfigStore(ABC):
    """Abstract interface for global config persistence."""

    @abstractmethod
    def exists(self) -> bool: ...

    @abstractmethod
    def load(self) -> CartiConfig:
        """Load config.

        Raises:
            FileNotFoundError: If config doesn't exist
            ValueError: If config is malformed
        """
        ...

    @abstractmethod
    def save(self, config: CartiConfig) -> None: ...

    @abstractmethod
    def path(self) -> Path:
        """Path of the config file, for messages."""
        ...

    def load_or_default(self) -> CartiConfig:
        if not self.exists():
            return CartiConfig()
        return self.load()


class RealConfigStore(ConfigStore):
    """Reads and writes <carti home>/config.toml."""

    def __init__(self, home: Path) -> None:
        self._home = home

    def exists(self) -> bool:
        return self.path().exists()

    def load(self) -> CartiConfig:
        config_path = self.path()
        if not config_path.exists():
            raise FileNotFoundError(f"Config not found at {config_path}")

        try:
            data = tomllib.loads(config_path.read_text(encoding="utf-8"))
        except tomllib.TOMLDecodeError as e:
            raise ValueError(f"Malformed config at {config_path}: {e}") from e

        unknown = set(data) - set(CartiConfig.keys())
        if unknown:
            raise ValueError(f"Unknown keys in {config_path}: {', '.join(sorted(unknown))}")

        defaults = CartiConfig()
        return CartiConfig(
            build_image=str(data.get("build_image", defaults.build_image)),
            s3_endpoint_url=data.get("s3_endpoint_url"),
        )

    def save(self, config: CartiConfig) -> None:
        config_path = self.path()
        config_path.parent.mkdir(parents=True, exist_ok=True)

        # Preserve comments and formatting of an existing file
        if config_path.exists():
            doc = tomlkit.parse(config_path.read_text(encoding="utf-8"))
        else:
            doc = tomlkit.document()
            doc.add(tomlkit.comment("Global carti configuration"))

        doc["build_image"] = config.build_image
        if config.s3_endpoint_url is not None:
            doc["s3_endpoint_url"] = config.s3_endpoint_url
        elif "s3_endpoint_url" in doc:
            del doc["s3_endpoint_url"]

        config_path.write_text(tomlkit.dumps(doc), encoding="utf-8")

    def path(self) -> Path:
        return self._home / CONFIG_FILE


class FakeConfigStore(ConfigStore):
    """In-memory config store for tests."""

    def __init__(self, config: CartiConfig | None = None) -> None:
        self._config = config
        self.saved: list[CartiConfig] = []

    def exists(self) -> bool:
        return self._config is not None

    def load(self) -> CartiConfig:
        if self._config is None:
            raise FileNotFoundError(f"Config not found at {self.path()}")
        return self._config

    def save(self, config: CartiConfig) -> None:
        self._config = config
        self.saved.append(config)

    def path(self) -> Path:
        return Path("/fake/carti/config.toml")
