"""Dict/YAML config loader for pii-scanner.

Supports loading from a YAML file or a plain dict (for embedding
in a larger config).

Example YAML:

    pii_scanner:
      context_lines: 2
      target_column: ""          # empty = auto-detect
      max_workers: 4
      categories:
        phone: true
        id_card: true
        bank_card: true
        name: false
      name_service:
        api_host: localhost:8080
        confidence_threshold: 0.8
"""

from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .errors import ConfigError

MESSAGE_COLUMN_MARKER = "消息内容"

CATEGORY_NAMES = ("phone", "id_card", "bank_card", "name")


@dataclass(frozen=True)
class Configuration:
    """Immutable snapshot shared by every worker."""
    context_lines: int = 2
    target_column: str = ""             # "" = auto-detect
    enable_phone: bool = True
    enable_id_card: bool = True
    enable_bank_card: bool = True
    enable_name: bool = False
    api_host: str = "localhost:8080"
    name_confidence_threshold: float = 0.8
    max_workers: int | None = None      # None = executor default

    def __post_init__(self) -> None:
        if self.context_lines < 0:
            raise ConfigError(f"context_lines must be >= 0, got {self.context_lines}")
        if self.max_workers is not None and self.max_workers < 1:
            raise ConfigError(f"max_workers must be >= 1, got {self.max_workers}")

    def enabled_categories(self) -> list[str]:
        flags = (self.enable_phone, self.enable_id_card, self.enable_bank_card, self.enable_name)
        return [name for name, on in zip(CATEGORY_NAMES, flags) if on]

    def has_any_extraction_enabled(self) -> bool:
        return bool(self.enabled_categories())


def load_config(data: dict[str, Any]) -> Configuration:
    """Normalize a config dict (from YAML or inline)."""
    # Support nested under "pii_scanner" key or flat
    if "pii_scanner" in data:
        data = data["pii_scanner"] or {}

    categories = data.get("categories") or {}
    service = data.get("name_service") or {}
    defaults = Configuration()

    try:
        return Configuration(
            context_lines=int(data.get("context_lines", defaults.context_lines)),
            target_column=str(data.get("target_column") or ""),
            enable_phone=bool(categories.get("phone", defaults.enable_phone)),
            enable_id_card=bool(categories.get("id_card", defaults.enable_id_card)),
            enable_bank_card=bool(categories.get("bank_card", defaults.enable_bank_card)),
            enable_name=bool(categories.get("name", defaults.enable_name)),
            api_host=str(service.get("api_host", defaults.api_host)),
            name_confidence_threshold=float(
                service.get("confidence_threshold", defaults.name_confidence_threshold)
            ),
            max_workers=_optional_int(data.get("max_workers")),
        )
    except (TypeError, ValueError) as e:
        raise ConfigError(f"invalid configuration: {e}") from e


def load_from_yaml(path: str | Path) -> Configuration:
    """Load config from a YAML file."""
    import yaml  # optional dependency
    with open(path, encoding="utf-8") as f:
        return load_config(yaml.safe_load(f) or {})


def _optional_int(value: Any) -> int | None:
    return None if value is None else int(value)
