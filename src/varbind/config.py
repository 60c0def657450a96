"""Configuration parsing for varbind.yaml"""

from __future__ import annotations

import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

from varbind.expression.validator import DEFAULT_EFFECTS

CONFIG_FILE = "varbind.yaml"
DEFAULT_COLLECTION_COMPONENT = "ws:collection"


class VarbindSettings(BaseModel):
    """Engine settings

    - collection_component: component whose own parameters are hidden from it
    - effects: effect names callable from action props
    - transaction_log: optional JSON lines file receiving committed transactions
    """

    collection_component: str = DEFAULT_COLLECTION_COMPONENT
    effects: list[str] = Field(default_factory=lambda: sorted(DEFAULT_EFFECTS))
    transaction_log: str | None = None

    @classmethod
    def load(cls, path: Path) -> "VarbindSettings":
        """Load settings from yaml file, defaults when missing"""
        if not path.exists():
            return cls()

        with open(path) as f:
            data = yaml.safe_load(f) or {}

        return cls.model_validate(data)

    @classmethod
    def discover(cls, start: Path | None = None) -> "VarbindSettings":
        """Load varbind.yaml from `start` (cwd by default) or its parents"""
        cwd = start or Path.cwd()
        for parent in [cwd, *cwd.parents]:
            candidate = parent / CONFIG_FILE
            if candidate.exists():
                return cls.load(candidate)
        return cls()


def debug_enabled() -> bool:
    return bool(os.environ.get("VARBIND_DEBUG"))
