from __future__ import annotations

from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any

import yaml

DEFAULT_DEBOUNCE_DELAY = 0.3


@dataclass(frozen=True)
class BridgeOptions:
    """Tunables shared by the converters and the sync coordinator."""

    debounce_delay: float = DEFAULT_DEBOUNCE_DELAY
    max_heading_level: int = 6
    collapse_blank_lines: bool = True

    def __post_init__(self) -> None:
        if isinstance(self.debounce_delay, bool) or not isinstance(self.debounce_delay, (int, float)):
            raise ValueError(f"debounce_delay must be a number, got {self.debounce_delay!r}")
        if self.debounce_delay < 0:
            raise ValueError("debounce_delay must not be negative")
        if isinstance(self.max_heading_level, bool) or not isinstance(self.max_heading_level, int):
            raise ValueError(f"max_heading_level must be an integer, got {self.max_heading_level!r}")
        if not 1 <= self.max_heading_level <= 6:
            raise ValueError("max_heading_level must be between 1 and 6")
        if not isinstance(self.collapse_blank_lines, bool):
            raise ValueError(f"collapse_blank_lines must be true or false, got {self.collapse_blank_lines!r}")

    def updated(self, **overrides: Any) -> "BridgeOptions":
        """Return a copy with the non-None overrides applied."""
        return replace(self, **{key: value for key, value in overrides.items() if value is not None})


def parse_options(text: str) -> BridgeOptions:
    """Parse a YAML mapping of option names into ``BridgeOptions``."""
    data = yaml.safe_load(text) or {}
    if not isinstance(data, dict):
        raise ValueError("Config root must be a mapping of option names to values.")

    known = {f.name for f in fields(BridgeOptions)}
    # Accept dashed spellings too, matching the CLI flags.
    normalized = {str(key).replace("-", "_"): value for key, value in data.items()}
    unknown = sorted(set(normalized) - known)
    if unknown:
        raise ValueError(f"Unknown config option(s): {', '.join(unknown)}")
    return BridgeOptions(**normalized)


def load_options(path: str | Path) -> BridgeOptions:
    return parse_options(Path(path).read_text(encoding="utf-8"))
