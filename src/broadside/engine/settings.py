"""Match configuration."""

from __future__ import annotations

import os
from typing import Any, Dict

from pydantic import BaseModel, Field, model_validator

ENV_FIELDS = {
    "rows": "BROADSIDE_ROWS",
    "cols": "BROADSIDE_COLS",
    "number_of_ships": "BROADSIDE_SHIPS",
}


class MatchSettings(BaseModel):
    """Board dimensions and fleet size for one match."""

    rows: int = Field(default=10, ge=1, le=26)
    cols: int = Field(default=10, ge=1, le=26)
    number_of_ships: int = Field(default=4, ge=1)

    @model_validator(mode="after")
    def _fleet_fits(self) -> "MatchSettings":
        if self.number_of_ships > max(self.rows, self.cols):
            raise ValueError("The largest ship must fit on the board.")
        if self.total_ship_cells > self.rows * self.cols:
            raise ValueError("The fleet has more cells than the board.")
        return self

    @property
    def total_ship_cells(self) -> int:
        return self.number_of_ships * (self.number_of_ships + 1) // 2

    @classmethod
    def from_env(cls, **overrides: Any) -> "MatchSettings":
        """Read ``BROADSIDE_ROWS``/``BROADSIDE_COLS``/``BROADSIDE_SHIPS``; overrides win."""

        data: Dict[str, Any] = {}
        for field, env_name in ENV_FIELDS.items():
            value = os.getenv(env_name)
            if value is not None and value.strip():
                data[field] = value.strip()
        data.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**data)
