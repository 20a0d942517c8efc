"""Configuration system for hog."""

from dataclasses import dataclass, field, fields, is_dataclass
from pathlib import Path

import tomlkit


@dataclass
class SamplerConfig:
    """External command configuration."""

    ps_command: list[str] = field(default_factory=lambda: ["ps", "ax"])
    top_command: list[str] = field(
        default_factory=lambda: ["top", "-stats", "ppid,pid,mem,cpu", "-a", "-l"]
    )
    cpu_samples: int = 4  # top needs several samples before %CPU means anything
    memory_samples: int = 1
    command_timeout: float = 60.0  # Seconds; 0 waits forever


@dataclass
class ThresholdsConfig:
    """Minimum usage for an application to be reported."""

    min_memory_kib: int = 50 * 1024  # 50 MiB
    min_cpu_percent: float = 1.0


@dataclass
class MemoryBands:
    """Memory color bands, in KiB.

    - above high: bright red, shown in GB
    - above elevated: bright yellow, shown in MB
    - above mebibyte: bright blue, shown in MB
    - otherwise: bright blue, shown in KB
    """

    high: float = 1024**2 * 0.9
    elevated: float = 1024 * 150
    mebibyte: float = 1024 * 0.95


@dataclass
class CpuBands:
    """CPU color bands, in percent."""

    high: float = 80.0
    elevated: float = 30.0


@dataclass
class NameAlias:
    """Fixed name for any command line containing marker."""

    marker: str
    name: str


@dataclass
class NamesConfig:
    """Extra name resolution rules, tried after the built-in ones."""

    aliases: list[NameAlias] = field(default_factory=list)


@dataclass
class LoggingConfig:
    """JSON log file rotation."""

    log_max_bytes: int = 1024 * 1024  # 1MB
    log_backup_count: int = 2


def _dataclass_to_table(obj: object) -> tomlkit.items.Table:
    """Convert a dataclass instance to a tomlkit Table recursively."""
    table = tomlkit.table()
    for f in fields(obj):  # type: ignore[arg-type]
        value = getattr(obj, f.name)
        if is_dataclass(value) and not isinstance(value, type):
            table.add(f.name, _dataclass_to_table(value))
        elif isinstance(value, list) and value and is_dataclass(value[0]):
            array = tomlkit.aot()
            for item in value:
                array.append(_dataclass_to_table(item))
            table.add(f.name, array)
        else:
            table.add(f.name, value)
    return table


@dataclass
class Config:
    """Main configuration container."""

    sampler: SamplerConfig = field(default_factory=SamplerConfig)
    thresholds: ThresholdsConfig = field(default_factory=ThresholdsConfig)
    memory_bands: MemoryBands = field(default_factory=MemoryBands)
    cpu_bands: CpuBands = field(default_factory=CpuBands)
    names: NamesConfig = field(default_factory=NamesConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @property
    def config_dir(self) -> Path:
        """Configuration directory."""
        return Path.home() / ".config" / "hog"

    @property
    def config_path(self) -> Path:
        """Path to config file."""
        return self.config_dir / "config.toml"

    @property
    def state_dir(self) -> Path:
        """State directory for logs."""
        return Path.home() / ".local" / "state" / "hog"

    @property
    def log_path(self) -> Path:
        """JSON log path."""
        return self.state_dir / "hog.log"

    def to_document(self) -> tomlkit.TOMLDocument:
        """Render every section as a TOML document."""
        doc = tomlkit.document()
        sections = ["sampler", "thresholds", "memory_bands", "cpu_bands", "names", "logging"]
        for name in sections:
            doc.add(name, _dataclass_to_table(getattr(self, name)))
            doc.add(tomlkit.nl())

        return doc

    def save(self, path: Path | None = None) -> None:
        """Save config to TOML file."""
        path = path or self.config_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(tomlkit.dumps(self.to_document()))

    @classmethod
    def load(cls, path: Path | None = None) -> "Config":
        """Load config from TOML file, returning defaults for missing values.

        Raises:
            ValueError: If the file is not valid TOML or holds invalid values.
        """
        defaults = cls()
        path = path or defaults.config_path
        if not path.exists():
            return defaults

        try:
            with open(path) as f:
                data = tomlkit.load(f).unwrap()
        except tomlkit.exceptions.TOMLKitError as e:
            raise ValueError(f"Failed to parse config file {path}: {e}") from e

        return cls(
            sampler=_load_sampler_config(data.get("sampler", {})),
            thresholds=_load_thresholds_config(data.get("thresholds", {})),
            memory_bands=_load_memory_bands(data.get("memory_bands", {})),
            cpu_bands=_load_cpu_bands(data.get("cpu_bands", {})),
            names=_load_names_config(data.get("names", {})),
            logging=_load_logging_config(data.get("logging", {})),
        )


def _load_sampler_config(data: dict) -> SamplerConfig:
    """Load sampler config from TOML data, using dataclass defaults for missing fields."""
    defaults = SamplerConfig()

    ps_command = data.get("ps_command", defaults.ps_command)
    top_command = data.get("top_command", defaults.top_command)
    for name, command in (("ps_command", ps_command), ("top_command", top_command)):
        if not command or not all(isinstance(part, str) for part in command):
            raise ValueError(f"{name} must be a non-empty list of strings, got {command!r}")

    cpu_samples = data.get("cpu_samples", defaults.cpu_samples)
    memory_samples = data.get("memory_samples", defaults.memory_samples)
    if cpu_samples < 1:
        raise ValueError(f"cpu_samples must be >= 1, got {cpu_samples}")
    if memory_samples < 1:
        raise ValueError(f"memory_samples must be >= 1, got {memory_samples}")

    command_timeout = data.get("command_timeout", defaults.command_timeout)
    if command_timeout < 0:
        raise ValueError(f"command_timeout must be >= 0, got {command_timeout}")

    return SamplerConfig(
        ps_command=list(ps_command),
        top_command=list(top_command),
        cpu_samples=cpu_samples,
        memory_samples=memory_samples,
        command_timeout=command_timeout,
    )


def _load_thresholds_config(data: dict) -> ThresholdsConfig:
    """Load report thresholds from TOML data."""
    defaults = ThresholdsConfig()
    min_memory_kib = data.get("min_memory_kib", defaults.min_memory_kib)
    min_cpu_percent = data.get("min_cpu_percent", defaults.min_cpu_percent)

    if min_memory_kib < 0:
        raise ValueError(f"min_memory_kib must be >= 0, got {min_memory_kib}")
    if min_cpu_percent < 0:
        raise ValueError(f"min_cpu_percent must be >= 0, got {min_cpu_percent}")

    return ThresholdsConfig(min_memory_kib=min_memory_kib, min_cpu_percent=min_cpu_percent)


def _load_memory_bands(data: dict) -> MemoryBands:
    """Load memory color bands from TOML data."""
    d = MemoryBands()
    return MemoryBands(
        high=data.get("high", d.high),
        elevated=data.get("elevated", d.elevated),
        mebibyte=data.get("mebibyte", d.mebibyte),
    )


def _load_cpu_bands(data: dict) -> CpuBands:
    """Load CPU color bands from TOML data."""
    d = CpuBands()
    return CpuBands(
        high=data.get("high", d.high),
        elevated=data.get("elevated", d.elevated),
    )


def _load_names_config(data: dict) -> NamesConfig:
    """Load name aliases from TOML data.

    Aliases are an array of tables, each with a marker and a name:

        [[names.aliases]]
        marker = "Slack Helper"
        name = "Slack"
    """
    aliases = []
    for entry in data.get("aliases", []):
        marker = entry.get("marker") if isinstance(entry, dict) else None
        name = entry.get("name") if isinstance(entry, dict) else None
        if not isinstance(marker, str) or not marker or not isinstance(name, str) or not name:
            raise ValueError(f"Invalid name alias: {entry!r}. Needs a marker and a name")
        aliases.append(NameAlias(marker=marker, name=name))
    return NamesConfig(aliases=aliases)


def _load_logging_config(data: dict) -> LoggingConfig:
    """Load log rotation settings from TOML data."""
    d = LoggingConfig()
    return LoggingConfig(
        log_max_bytes=data.get("log_max_bytes", d.log_max_bytes),
        log_backup_count=data.get("log_backup_count", d.log_backup_count),
    )
