from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator


class DraftFile(BaseModel):
    """Concert draft as written in a YAML file for `concertdesk concert create`."""

    title: str = ""
    description: str
    date: str
    time: str
    venue: str
    prices: dict[str, Any] = Field(default_factory=dict)
    performers: list[str] = Field(default_factory=list)
    collaborations: list[tuple[str, str]] = Field(default_factory=list)

    @field_validator("time", mode="before")
    @classmethod
    def _unquoted_clock(cls, value: Any) -> Any:
        # YAML 1.1 reads an unquoted 20:00 as the sexagesimal int 1200.
        if isinstance(value, int) and not isinstance(value, bool):
            return f"{value // 60:02d}:{value % 60:02d}"
        return value

    @field_validator("venue", mode="before")
    @classmethod
    def _venue_as_text(cls, value: Any) -> Any:
        return str(value) if isinstance(value, int) else value


def load_concert_draft(path: str | Path) -> DraftFile:
    """
    Load a concert draft file.

    Expected structure:
      concert:
        description: "Fall Tour"
        date: "25-12-2099"
        time: "20:00"
        venue: "arena-1"
        prices: {A: 49.99, B: 29.99}
        performers: ["artist-1"]
    """
    draft_path = Path(path)
    if not draft_path.exists():
        raise FileNotFoundError(f"Draft file not found: {draft_path}")

    data = _load_yaml(draft_path)
    return DraftFile(**data.get("concert", data))


def _load_yaml(path: Path) -> dict[str, Any]:
    with path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}
