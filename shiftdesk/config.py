from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from schedule_core.models import BusinessHours, ShiftTemplate

DEFAULT_OPENING_HOUR = "09:00"
DEFAULT_CLOSING_HOUR = "22:00"

DEFAULT_SHIFT_TEMPLATES: list[dict[str, Any]] = [
    {
        "id": "template-open",
        "name": "Open",
        "shift_type": "open",
        "start_time": "09:00",
        "end_time": "15:00",
        "required_staff": 3,
        "color": "#4CAF50",
        "required_positions": {"barista": 2, "cashier": 1},
    },
    {
        "id": "template-middle",
        "name": "Middle",
        "shift_type": "middle",
        "start_time": "15:00",
        "end_time": "17:00",
        "required_staff": 2,
        "color": "#2196F3",
        "required_positions": {"barista": 1, "cashier": 1},
    },
    {
        "id": "template-close",
        "name": "Close",
        "shift_type": "close",
        "start_time": "17:00",
        "end_time": "22:00",
        "required_staff": 3,
        "color": "#9C27B0",
        "required_positions": {"barista": 2, "cashier": 1},
    },
]


@dataclass(frozen=True)
class ApiConfig:
    base_url: str
    token: str
    store_id: str


@dataclass(frozen=True)
class RuntimeConfig:
    artifact_root: Path
    store_id: str
    api_base_url: str | None
    template_file: Path | None


def load_env(dotenv_path: str | Path | None = None) -> None:
    path = Path(dotenv_path) if dotenv_path else None
    if path and path.exists():
        load_dotenv(path)
        return
    load_dotenv()


def runtime_config() -> RuntimeConfig:
    artifact_root = Path(os.getenv("SHIFTDESK_ARTIFACT_DIR", "./artifacts")).expanduser().resolve()
    artifact_root.mkdir(parents=True, exist_ok=True)
    base_url = os.getenv("SHIFTDESK_API_BASE_URL", "").strip().rstrip("/")
    template_file = os.getenv("SHIFTDESK_TEMPLATE_FILE", "").strip()
    return RuntimeConfig(
        artifact_root=artifact_root,
        store_id=os.getenv("SHIFTDESK_STORE_ID", "default").strip() or "default",
        api_base_url=base_url or None,
        template_file=Path(template_file).expanduser() if template_file else None,
    )


def get_api_config() -> ApiConfig:
    base_url = os.getenv("SHIFTDESK_API_BASE_URL", "").strip().rstrip("/")
    token = os.getenv("SHIFTDESK_API_TOKEN", "").strip()
    if not base_url:
        raise ValueError(
            "Missing SHIFTDESK_API_BASE_URL. Set it (and SHIFTDESK_API_TOKEN) "
            "to use the REST backend, or leave it unset for local JSON storage."
        )
    return ApiConfig(
        base_url=base_url,
        token=token,
        store_id=os.getenv("SHIFTDESK_STORE_ID", "default").strip() or "default",
    )


def business_hours_from_env() -> BusinessHours:
    return BusinessHours(
        opening_hour=os.getenv("SHIFTDESK_OPENING_HOUR", DEFAULT_OPENING_HOUR).strip(),
        closing_hour=os.getenv("SHIFTDESK_CLOSING_HOUR", DEFAULT_CLOSING_HOUR).strip(),
    )


def load_shift_templates(template_file: Path | None = None) -> list[ShiftTemplate]:
    """Templates from a JSON list file, or the built-in open/middle/close set."""
    if template_file is None or not template_file.exists():
        return [ShiftTemplate.from_dict(t) for t in DEFAULT_SHIFT_TEMPLATES]
    with template_file.open("r", encoding="utf-8") as fh:
        payload = json.load(fh)
    if isinstance(payload, dict):
        payload = payload.get("templates", [])
    return [ShiftTemplate.from_dict(t) for t in payload]
