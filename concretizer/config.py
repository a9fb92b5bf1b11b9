"""
Configuration file loader for ``.concretizer.yml``.

Provides sane defaults so the synthesizer works out of the box even without
a config file, while allowing per-project control over signature matching
and the way synthesized types are emitted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml


CONFIG_FILENAMES = (".concretizer.yml", ".concretizer.yaml")

STRATEGIES = ("runtime", "source")


@dataclass
class AnalysisConfig:
    # False: a concrete member cancels an obligation by name alone
    match_parameter_types: bool = True


@dataclass
class SynthesisConfig:
    enabled: bool = True
    strategy: str = "runtime"
    type_suffix: str = "Impl"
    module: str = "concretizer.synthesized"

    def __post_init__(self):
        if self.strategy not in STRATEGIES:
            raise ValueError(
                f"Unknown synthesis strategy {self.strategy!r} "
                f"(expected one of: {', '.join(STRATEGIES)})"
            )


@dataclass
class ConcretizerConfig:
    """Top-level configuration for concretizer."""
    analysis: AnalysisConfig = field(default_factory=AnalysisConfig)
    synthesis: SynthesisConfig = field(default_factory=SynthesisConfig)

    @classmethod
    def load(cls, root: Path) -> "ConcretizerConfig":
        """Load config from .concretizer.yml under *root*, falling back to defaults."""
        for name in CONFIG_FILENAMES:
            config_path = Path(root) / name
            if config_path.exists():
                return cls.from_file(config_path)
        return cls()

    @classmethod
    def from_file(cls, path: Path) -> "ConcretizerConfig":
        with open(path) as f:
            raw = yaml.safe_load(f) or {}
        return cls._from_dict(raw)

    @classmethod
    def _from_dict(cls, raw: dict[str, Any]) -> "ConcretizerConfig":
        analysis_raw = raw.get("analysis") or {}
        synthesis_raw = raw.get("synthesis") or {}

        analysis = AnalysisConfig(
            match_parameter_types=bool(_option(analysis_raw, "match-parameter-types", True)),
        )

        synthesis = SynthesisConfig(
            enabled=bool(_option(synthesis_raw, "enabled", True)),
            strategy=str(_option(synthesis_raw, "strategy", "runtime")),
            type_suffix=str(_option(synthesis_raw, "type-suffix", "Impl")),
            module=str(_option(synthesis_raw, "module", "concretizer.synthesized")),
        )

        return cls(analysis=analysis, synthesis=synthesis)

    def to_yaml(self) -> str:
        """Serialise to YAML string."""
        lines = [
            "# .concretizer.yml: concrete-type synthesizer configuration",
            "",
            "analysis:",
            f"  match-parameter-types: {str(self.analysis.match_parameter_types).lower()}",
            "",
            "synthesis:",
            f"  enabled: {str(self.synthesis.enabled).lower()}",
            f"  strategy: {self.synthesis.strategy}",
            f"  type-suffix: {self.synthesis.type_suffix}",
            f"  module: {self.synthesis.module}",
        ]
        return "\n".join(lines) + "\n"


def _option(section: dict[str, Any], key: str, default: Any) -> Any:
    """Read *key* written either with dashes or with underscores."""
    return section.get(key, section.get(key.replace("-", "_"), default))
