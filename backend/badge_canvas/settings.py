import os
from typing import Optional

import yaml
from pydantic import BaseModel, Field

SETTINGS_ENV_VAR = "BADGE_CANVAS_SETTINGS"


class LayoutSettings(BaseModel):
    """Placement used when a stored rule is expanded back onto the canvas."""

    origin_x: float = 100.0
    origin_y: float = 100.0
    column_step: float = Field(default=250.0, gt=0.0)
    row_step: float = Field(default=80.0, gt=0.0)
    badge_column_x: float = 550.0
    badge_row_step: float = Field(default=150.0, gt=0.0)


def load_layout_settings(path: Optional[str] = None) -> LayoutSettings:
    path = path or os.environ.get(SETTINGS_ENV_VAR)
    if not path:
        return LayoutSettings()

    with open(path, "r") as f:
        data = yaml.safe_load(f)
    if not data:
        return LayoutSettings()
    if not isinstance(data, dict):
        raise ValueError(f"Layout settings must be a mapping: {path}")

    # Accept either a bare mapping or one nested under a "layout" key
    return LayoutSettings(**data.get("layout", data))
