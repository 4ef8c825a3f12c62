from __future__ import annotations
from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, Mapping, Optional, Tuple
import os

from dotenv import load_dotenv

from ..exceptions import InvalidInputError
from .diff_result import DIFF_STATUS_ALL, DIFF_STATUS_CHANGED, DiffStatus
from .render_program import RenderProgram

# Load environment variables
load_dotenv()

ENV_PREFIX = "DIFFMAP_"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class DiffOptions:
    """
    Every knob of a diff call, with its default.

    Distances and contrasts are on the 0-255 scale of `color_distance`.
    """
    # Similarity / significance
    changed_min_distance: float = 40.0       # below: similar, at/above: changed
    antialias_min_distance: float = 12.0
    antialias_max_distance: float = 150.0
    background_max_contrast: float = 25.0
    diff_include_antialias: bool = False
    diff_include_background: bool = False
    diff_include_foreground: bool = True

    # Grouping
    group_merge_max_gap_size: int = 80
    group_border_size: int = 15
    group_padding_size: int = 80

    # Status
    mismatch_min_percent: float = 50.0       # percent of all pixels

    # Rendering
    output: Tuple[str, ...] = ("groups",)
    output_options: Mapping[str, Any] = field(default_factory=dict)
    output_programs: Optional[Mapping[str, RenderProgram]] = None  # None: default catalog
    output_when_status: Tuple[DiffStatus, ...] = DIFF_STATUS_CHANGED

    def __post_init__(self):
        # Lists and mappings from callers become tuples and private dicts.
        object.__setattr__(self, "output", tuple(self.output))
        object.__setattr__(self, "output_options", dict(self.output_options))
        object.__setattr__(
            self, "output_when_status",
            tuple(DiffStatus(s) for s in self.output_when_status),
        )

    # ── Construction helpers ─────────────────────────────────────────
    def with_overrides(self, **overrides) -> "DiffOptions":
        known = {f.name for f in fields(self)}
        unknown = sorted(set(overrides) - known)
        if unknown:
            raise InvalidInputError(f"Unknown diff option(s): {', '.join(unknown)}")
        return replace(self, **overrides)

    def with_raw_values(self, raw: Mapping[str, str]) -> "DiffOptions":
        """Apply string values (env vars, CLI `key=value` pairs)."""
        parsed = {name: self.parse_value(name, value) for name, value in raw.items()}
        return self.with_overrides(**parsed)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, **overrides) -> "DiffOptions":
        """
        Defaults, then `DIFFMAP_<FIELD>` environment variables, then keyword overrides.
        """
        environ = os.environ if environ is None else environ
        raw: Dict[str, str] = {}
        for f in fields(cls):
            if f.name in ("output_options", "output_programs"):
                continue
            value = environ.get(ENV_PREFIX + f.name.upper())
            if value is not None and value.strip() != "":
                raw[f.name] = value
        return cls().with_raw_values(raw).with_overrides(**overrides)

    @classmethod
    def parse_value(cls, name: str, raw: str) -> Any:
        defaults = cls()
        if not hasattr(defaults, name) or name in ("output_options", "output_programs"):
            raise InvalidInputError(f"Option cannot be set from text: {name}")
        default = getattr(defaults, name)
        text = raw.strip()
        try:
            if isinstance(default, bool):
                lowered = text.lower()
                if lowered in _TRUE:
                    return True
                if lowered in _FALSE:
                    return False
                raise ValueError(text)
            if isinstance(default, int):
                return int(text)
            if isinstance(default, float):
                return float(text)
            if name == "output_when_status":
                if text.lower() == "all":
                    return DIFF_STATUS_ALL
                return tuple(DiffStatus(part.strip()) for part in text.split(",") if part.strip())
            if isinstance(default, tuple):
                return tuple(part.strip() for part in text.split(",") if part.strip())
        except ValueError as err:
            raise InvalidInputError(f"Invalid value for {name}: {raw!r}") from err
        return text
