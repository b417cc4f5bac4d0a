from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from data_designer.engine.column_generators.generators.base import ColumnGeneratorFullColumn

from data_designer_screenplay_guard.config import ScreenplayGuardColumnConfig
from data_designer_screenplay_guard.core import improvement_suggestions, score_document

if TYPE_CHECKING:
    import pandas as pd

logger = logging.getLogger(__name__)


class ScreenplayGuardColumnGenerator(ColumnGeneratorFullColumn[ScreenplayGuardColumnConfig]):
    """Column generator that scores screenplay text for AI-sounding writing."""

    def generate(self, data: pd.DataFrame) -> pd.DataFrame:
        logger.info(f"\U0001f3ac Scoring column {self.config.name!r} for AI screenplay patterns")
        logger.info(f"   target columns: {self.config.target_columns}")
        logger.info(f"   min_score: {self.config.min_score}")

        results = []
        for _, row in data[self.config.target_columns].iterrows():
            text = "\n".join(str(v) for v in row.values if v is not None)
            report = score_document(text)
            output: dict = {
                "is_valid": report.composite >= self.config.min_score,
                "composite": report.composite,
                "tier": report.tier,
                "word_count": report.word_count,
            }
            if self.config.include_categories:
                output["categories"] = {name: cat.score for name, cat in report.categories.items()}
            if self.config.include_suggestions:
                output["suggestions"] = improvement_suggestions(text)["suggestions"]
            results.append(output)

        data = data.copy()
        data[self.config.name] = results
        return data
