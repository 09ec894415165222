"""Configuration loading for ctxgen (.ctxgen.yml)."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

import yaml

from .errors import ConfigError

CONFIG_FILENAME = ".ctxgen.yml"
DEFAULT_CONTEXT_WINDOW = 128_000
DEFAULT_BUDGET_RATIO = 0.8
DEFAULT_SNAPSHOT_PATH = ".ctxgen/project-context.json"
SUPPORTED_TOKENIZERS = ("heuristic", "tiktoken")

_ENV_OVERRIDES = (
    ("model", "CTXGEN_LLM_MODEL", "OPENAI_MODEL"),
    ("base_url", "CTXGEN_LLM_BASE_URL", "OPENAI_BASE_URL"),
    ("api_key", "CTXGEN_LLM_API_KEY", "OPENAI_API_KEY"),
)


@dataclass
class LLMConfig:
    """LLM runtime settings from .ctxgen.yml."""

    runner: Optional[str] = None
    model: Optional[str] = None
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    base_url: Optional[str] = None
    api_key: Optional[str] = None
    request_timeout: Optional[float] = None
    context_window: int = DEFAULT_CONTEXT_WINDOW
    tokenizer: str = "heuristic"
    retries: int = 2


@dataclass
class AnalysisConfig:
    """Discovery exclusions and the token ceiling."""

    exclude_paths: List[str] = field(default_factory=list)
    token_budget: Optional[int] = None
    max_ast_depth: Optional[int] = None
    respect_gitignore: bool = True


@dataclass
class SnapshotConfig:
    enabled: bool = True
    path: str = DEFAULT_SNAPSHOT_PATH


@dataclass
class CtxGenConfig:
    """Represents the high-level settings defined in .ctxgen.yml."""

    root: Path
    llm: LLMConfig = field(default_factory=LLMConfig)
    analysis: AnalysisConfig = field(default_factory=AnalysisConfig)
    snapshot: SnapshotConfig = field(default_factory=SnapshotConfig)

    def token_ceiling(self) -> int:
        if self.analysis.token_budget is not None:
            return self.analysis.token_budget
        return int(self.llm.context_window * DEFAULT_BUDGET_RATIO)


def load_config(config_path: Path, *, env: Optional[Mapping[str, str]] = None) -> CtxGenConfig:
    """Load configuration from disk, applying environment overrides."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()
    environ = os.environ if env is None else env

    data: Dict[str, Any] = {}
    if config_file.exists():
        data = _read_config(config_file)

    llm_data = _as_dict(data.get("llm"))
    llm = LLMConfig(
        runner=_as_str(llm_data.get("runner")),
        model=_as_str(llm_data.get("model")),
        temperature=_as_float(llm_data.get("temperature")),
        max_tokens=_as_int(llm_data.get("max_tokens")),
        base_url=_as_str(llm_data.get("base_url")),
        api_key=_as_str(llm_data.get("api_key")),
        request_timeout=_as_float(llm_data.get("request_timeout")),
        context_window=_positive(_as_int(llm_data.get("context_window")), DEFAULT_CONTEXT_WINDOW),
        tokenizer=(_as_str(llm_data.get("tokenizer")) or "heuristic").lower(),
        retries=_non_negative(_as_int(llm_data.get("retries")), 2),
    )
    if llm.tokenizer not in SUPPORTED_TOKENIZERS:
        raise ConfigError(
            f"llm.tokenizer must be one of {', '.join(SUPPORTED_TOKENIZERS)}, got {llm.tokenizer!r}"
        )
    _apply_env_overrides(llm, environ)

    analysis_data = _as_dict(data.get("analysis"))
    analysis = AnalysisConfig(
        exclude_paths=_as_str_list(analysis_data.get("exclude_paths")),
        token_budget=_as_int(analysis_data.get("token_budget")),
        max_ast_depth=_as_int(analysis_data.get("max_ast_depth")),
    )
    respect = _as_bool(analysis_data.get("respect_gitignore"))
    if respect is not None:
        analysis.respect_gitignore = respect
    if analysis.token_budget is not None and analysis.token_budget <= 0:
        raise ConfigError("analysis.token_budget must be a positive integer")

    snapshot_data = _as_dict(data.get("snapshot"))
    snapshot = SnapshotConfig()
    enabled = _as_bool(snapshot_data.get("enabled"))
    if enabled is not None:
        snapshot.enabled = enabled
    snapshot_path = _as_str(snapshot_data.get("path"))
    if snapshot_path:
        snapshot.path = snapshot_path

    return CtxGenConfig(root=root, llm=llm, analysis=analysis, snapshot=snapshot)


def _apply_env_overrides(llm: LLMConfig, environ: Mapping[str, str]) -> None:
    # CTXGEN_* always wins; OPENAI_* only fills values the file left unset.
    for attr, primary, fallback in _ENV_OVERRIDES:
        override = environ.get(primary)
        if override:
            setattr(llm, attr, override)
        elif not getattr(llm, attr) and environ.get(fallback):
            setattr(llm, attr, environ[fallback])


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigError(f"{path.name} must contain a mapping at the root")
    return loaded


def _positive(value: Optional[int], default: int) -> int:
    return value if value is not None and value > 0 else default


def _non_negative(value: Optional[int], default: int) -> int:
    return value if value is not None and value >= 0 else default


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []


__all__ = [
    "AnalysisConfig",
    "CONFIG_FILENAME",
    "ConfigError",
    "CtxGenConfig",
    "LLMConfig",
    "SnapshotConfig",
    "SUPPORTED_TOKENIZERS",
    "load_config",
]
