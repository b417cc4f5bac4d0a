from __future__ import annotations

from typing import Literal

from pydantic import Field

from data_designer.config.column_configs import SingleColumnConfig


class ScreenplayGuardColumnConfig(SingleColumnConfig):
    """Score screenplay text columns for AI-sounding writing.

    Runs the six-category screenplay scorer over each row and produces a
    composite score (0-10), a tier label, and optionally the per-category
    subscores and revision suggestions.

    Attributes:
        target_columns: Columns whose text content will be concatenated and scored.
        min_score: Minimum composite (0-10) for ``is_valid=True``. Defaults to 7.0
            (the C-Tier boundary).
        include_categories: Include the six category subscores in output.
        include_suggestions: Include revision suggestions for weak categories.
    """

    target_columns: list[str]
    min_score: float = Field(default=7.0, ge=0, le=10, description="Minimum composite score for is_valid=True")
    include_categories: bool = Field(default=True, description="Include per-category subscores in output")
    include_suggestions: bool = Field(default=False, description="Include revision suggestions in output")
    column_type: Literal["screenplay-guard"] = "screenplay-guard"

    @staticmethod
    def get_column_emoji() -> str:
        return "\U0001f3ac"

    @property
    def required_columns(self) -> list[str]:
        return self.target_columns

    @property
    def side_effect_columns(self) -> list[str]:
        return []
