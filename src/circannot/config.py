"""Configuration management for circannot."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from circannot.constants import DEFAULT_FEATURE_ORDER, FEATURE_NULL, JUNCTION_NULL
from circannot.exceptions import ConfigurationError
from circannot.utils.logging import parse_level


@dataclass
class RuntimeConfig:
    """Runtime configuration."""

    log_level: str = "WARNING"
    log_file: Optional[Path] = None


@dataclass
class AnnotationConfig:
    """Overlap and labelling options."""

    strand_aware: bool = True
    # Precedence order of gene sub-features at a boundary
    feature_order: List[str] = field(default_factory=lambda: list(DEFAULT_FEATURE_ORDER))
    feature_null: str = FEATURE_NULL
    junction_null: str = JUNCTION_NULL
    # 0 keeps every candidate
    min_reads: int = 0


@dataclass
class LookupConfig:
    """Gene-symbol lookup against Ensembl BioMart."""

    resolve_symbols: bool = True
    timeout: float = 60.0
    chunk_size: int = 500
    assembly2organism: Dict[str, str] = field(
        default_factory=lambda: {
            "hg19": "hsa",
            "hg38": "hsa",
            "mm10": "mmu",
            "rn5": "rno",
            "dm6": "dme",
        }
    )
    organism2dataset: Dict[str, str] = field(
        default_factory=lambda: {
            "hsa": "hsapiens",
            "mmu": "mmusculus",
            "rno": "rnorvegicus",
            "dme": "dmelanogaster",
        }
    )
    assembly2release: Dict[str, str] = field(
        default_factory=lambda: {
            "hg19": "GRCh37",
            "hg38": "current",
            "mm10": "current",
            "rn5": "e79",
            "dm6": "current",
        }
    )
    ensembl_hosts: Dict[str, str] = field(
        default_factory=lambda: {
            "current": "https://www.ensembl.org",
            "GRCh37": "https://grch37.ensembl.org",
            "e79": "https://mar2015.archive.ensembl.org",
        }
    )


@dataclass
class CircBaseConfig:
    """SQL connection to a circBase mirror."""

    drivername: str = "mysql+pymysql"
    host: Optional[str] = None
    port: Optional[int] = None
    user: Optional[str] = None
    password: Optional[str] = None
    database: Optional[str] = "circbase"


@dataclass
class Config:
    """Main configuration class."""

    # Required parameters (set via CLI or config file)
    input_file: Optional[Path] = None
    annotation_file: Optional[Path] = None
    output_file: Optional[Path] = None
    assembly: Optional[str] = None

    # Sub-configurations
    runtime: RuntimeConfig = field(default_factory=RuntimeConfig)
    annotation: AnnotationConfig = field(default_factory=AnnotationConfig)
    lookup: LookupConfig = field(default_factory=LookupConfig)
    circbase: CircBaseConfig = field(default_factory=CircBaseConfig)

    @property
    def organism(self) -> str:
        """Organism code for the configured assembly."""
        try:
            return self.lookup.assembly2organism[self.assembly]
        except KeyError:
            raise ConfigurationError(
                f"Unknown assembly {self.assembly!r}; known: {sorted(self.lookup.assembly2organism)}"
            ) from None

    @property
    def release(self) -> str:
        """Ensembl release key for the configured assembly."""
        return self.lookup.assembly2release.get(self.assembly, "current")

    def validate(self) -> None:
        """Validate configuration."""
        if not self.input_file:
            raise ConfigurationError("Input file is required")
        if not self.annotation_file:
            raise ConfigurationError("Annotation GTF is required")
        if not self.assembly:
            raise ConfigurationError("Genome assembly is required")
        if not Path(self.input_file).exists():
            raise ConfigurationError(f"Input file not found: {self.input_file}")
        if not Path(self.annotation_file).exists():
            raise ConfigurationError(f"Annotation file not found: {self.annotation_file}")
        # raises for unknown assemblies
        self.organism

        self.validate_runtime()
        self.validate_annotation()
        if self.lookup.chunk_size < 1:
            raise ConfigurationError("lookup.chunk_size must be >= 1")
        if self.lookup.timeout <= 0:
            raise ConfigurationError("lookup.timeout must be > 0")

    def validate_runtime(self) -> None:
        """Check that the configured log level is one logging knows."""
        try:
            parse_level(self.runtime.log_level)
        except ValueError as exc:
            raise ConfigurationError(f"runtime.log_level: {exc}") from exc

    def validate_annotation(self) -> None:
        """Check the annotation options that do not depend on input files."""
        order = self.annotation.feature_order
        if not order or len(set(order)) != len(order) or any(
            f not in DEFAULT_FEATURE_ORDER for f in order
        ):
            raise ConfigurationError(
                f"annotation.feature_order must list distinct features out of "
                f"{DEFAULT_FEATURE_ORDER}, got {order}"
            )
        if self.annotation.min_reads < 0:
            raise ConfigurationError("annotation.min_reads must be >= 0")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""

        def path_to_str(obj):
            if isinstance(obj, Path):
                return str(obj)
            elif isinstance(obj, dict):
                return {k: path_to_str(v) for k, v in obj.items()}
            elif isinstance(obj, (list, tuple)):
                return [path_to_str(item) for item in obj]
            return obj

        return path_to_str(asdict(self))


_PATH_KEYS = ("input_file", "annotation_file", "output_file")
_SECTIONS = ("runtime", "annotation", "lookup", "circbase")


def load_config(path: Path) -> Config:
    """Load configuration from YAML file."""
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Configuration file {path} must contain a mapping")

    cfg = Config()
    for key in _PATH_KEYS:
        if data.get(key) is not None:
            setattr(cfg, key, Path(data[key]))
    if "assembly" in data:
        cfg.assembly = data["assembly"]

    unknown = [k for k in data if k not in _PATH_KEYS + _SECTIONS + ("assembly",)]
    if unknown:
        raise ConfigurationError("Unsupported config option(s): " + ", ".join(unknown))

    for section in _SECTIONS:
        values = data.get(section)
        if values is None:
            continue
        if not isinstance(values, dict):
            raise ConfigurationError(f"Config section '{section}' must be a mapping")
        target = getattr(cfg, section)
        for key, value in values.items():
            if not hasattr(target, key):
                raise ConfigurationError(f"Unsupported option '{section}.{key}'")
            if key == "log_file" and value:
                value = Path(value)
            setattr(target, key, value)

    cfg.validate_runtime()
    return cfg


def save_config(cfg: Config, path: Path) -> None:
    """Save configuration to YAML file."""
    data = cfg.to_dict()
    with open(path, "w", encoding="utf-8") as f:
        yaml.dump(data, f, default_flow_style=False, sort_keys=False)
