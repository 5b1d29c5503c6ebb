"""
Loading and validation of the DocScout crawler configuration.
Pydantic describes the schema; YAML and JSON files are both accepted.
"""
from __future__ import annotations

import errno
import json
import os
from pathlib import Path
from typing import Any, List, Literal, Optional, Union

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    HttpUrl,
    field_validator,
    model_validator,
)

__all__ = (
    "DEFAULT_USER_AGENTS",
    "NormalizationPolicy",
    "QualityConfig",
    "QualityWeights",
    "TreeConfig",
    "OutputConfig",
    "ScraperConfig",
    "load_config",
)

DEFAULT_USER_AGENTS: List[str] = [
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:89.0) Gecko/20100101 Firefox/89.0",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10.15; rv:89.0) Gecko/20100101 Firefox/89.0",
    "Mozilla/5.0 (X11; Linux x86_64; rv:89.0) Gecko/20100101 Firefox/89.0",
]


class NormalizationPolicy(BaseModel):
    """Which transforms the URL canonicalizer applies."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    strip_fragment: bool = True
    strip_query: bool = False
    lowercase: bool = True
    strip_www: bool = True
    strip_trailing_slash: bool = True
    sort_query_params: bool = True

    @classmethod
    def exact(cls) -> NormalizationPolicy:
        """Policy with every transform off: only identical strings collide."""
        return cls(
            strip_fragment=False,
            strip_query=False,
            lowercase=False,
            strip_www=False,
            strip_trailing_slash=False,
            sort_query_params=False,
        )


class QualityWeights(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    word_count: float = Field(0.30, ge=0)
    code_blocks: float = Field(0.20, ge=0)
    headers: float = Field(0.15, ge=0)
    content_ratio: float = Field(0.15, ge=0)
    title_presence: float = Field(0.10, ge=0)
    images: float = Field(0.10, ge=0)


class QualityConfig(BaseModel):
    """Thresholds for admitting a fetched page."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    min_word_count: int = Field(50, ge=0)
    require_title: bool = True
    require_content: bool = True
    skip_navigation_pages: bool = True
    blacklist_patterns: List[str] = Field(default_factory=lambda: ["404", "not found", "error"])
    min_score: float = Field(0.3, ge=0, le=1, description="Pages scoring below are skipped.")
    follow_rejected_links: bool = Field(
        False, description="Still queue the links of quality-rejected pages."
    )
    weights: QualityWeights = Field(default_factory=QualityWeights)


class TreeConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    use_url_hierarchy: bool = True
    fallback_to_root: bool = True
    sort_children: bool = False
    sort_by: Literal["index", "title", "url", "date"] = "index"
    sort_order: Literal["asc", "desc"] = "asc"
    auto_index: bool = True


class OutputConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    format: Literal["markdown", "text", "json"] = "markdown"
    layout: Literal["single", "per-page"] = "single"
    directory: Path = Path("output")
    hierarchical: bool = False


class ScraperConfig(BaseModel):
    """Configuration of a single crawl."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    root_url: HttpUrl = Field(..., description="Entry point of the crawl; its host bounds the scope.")
    max_depth: int = Field(3, ge=0, description="Maximum number of hops from the root.")
    max_pages: Optional[int] = Field(None, ge=1, description="Hard limit on admitted pages.")
    min_delay: float = Field(1.0, ge=0, description="Lower bound of the per-request delay (seconds).")
    max_delay: float = Field(3.0, ge=0, description="Upper bound of the per-request delay (seconds).")
    concurrency: int = Field(2, ge=1, description="Number of concurrent workers.")
    timeout: float = Field(10.0, gt=0, description="Timeout of one request (seconds).")
    retry_times: int = Field(2, ge=0, description="Retries on 5xx/429 and network errors.")
    retry_backoff: float = Field(1.0, ge=0, description="Base of the exponential backoff (seconds).")
    user_agents: List[str] = Field(default_factory=lambda: list(DEFAULT_USER_AGENTS))
    respect_robots: bool = True
    proxies: List[str] = Field(default_factory=list)

    enable_deduplication: bool = True
    enable_quality_analysis: bool = False

    normalization: NormalizationPolicy = Field(default_factory=NormalizationPolicy)
    quality: QualityConfig = Field(default_factory=QualityConfig)
    tree: TreeConfig = Field(default_factory=TreeConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)

    @field_validator("user_agents")
    def _non_empty_agents(cls, v: List[str]) -> List[str]:
        agents = [a.strip() for a in v if a and a.strip()]
        return agents or list(DEFAULT_USER_AGENTS)

    @model_validator(mode="after")
    def _check_delays(self) -> ScraperConfig:
        if self.max_delay < self.min_delay:
            raise ValueError("max_delay must be greater than or equal to min_delay")
        return self

    @property
    def root(self) -> str:
        return str(self.root_url)


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Top level of YAML must be a mapping, got {type(data).__name__}")
    return data


def _read_json(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8")) or {}
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Top level of JSON must be a mapping, got {type(data).__name__}")
    return data


def _merge(data: dict[str, Any], overrides: dict[str, Any]) -> None:
    for key, value in overrides.items():
        if value is None:
            continue
        if isinstance(value, dict):
            target = data.get(key)
            if not isinstance(target, dict):
                target = data[key] = {}
            _merge(target, value)
        else:
            data[key] = value


def load_config(path: Union[str, Path, None], **overrides: Any) -> ScraperConfig:
    """
    Read YAML or JSON and return a validated ScraperConfig.

    ``overrides`` are merged over the file (nested mappings key by key, values
    of None ignored), which is how the CLI applies its flags. Without a
    path the configuration is built from the overrides alone.
    """
    if path is None:
        data: dict[str, Any] = {}
        _merge(data, overrides)
        return ScraperConfig(**data)

    path_obj = Path(path).expanduser().resolve()
    if not path_obj.is_file():
        raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(path_obj))

    suffix = path_obj.suffix.lower()
    if suffix in (".yaml", ".yml"):
        data = _read_yaml(path_obj)
    elif suffix == ".json":
        data = _read_json(path_obj)
    else:
        raise ValueError(f"Unsupported config format: {suffix}")

    _merge(data, overrides)
    return ScraperConfig(**data)
