"""
Loads the reference entities named by a whole file in one round trip per
entity type.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from db.repositories.reference_repository import ReferenceRepository
from stats_import.domain.csv_import import NormalizedRow, ReferenceSnapshot
from stats_import.logging_utils import log_event

logger = logging.getLogger(__name__)


class ReferenceResolver:
    def __init__(self, repository: ReferenceRepository) -> None:
        self._repository = repository

    def load_snapshot(self, rows: Sequence[NormalizedRow]) -> ReferenceSnapshot:
        state_names = {row.state for row in rows}
        category_names = {row.category for row in rows}
        statistic_names = {row.statistic for row in rows}

        states = self._repository.state_ids_by_name(state_names)
        categories = self._repository.category_ids_by_name(category_names)
        statistics = self._repository.statistics_by_name(statistic_names)

        log_event(
            logger,
            logging.DEBUG,
            "reference_snapshot_loaded",
            states_requested=len(state_names),
            states_found=len(states),
            categories_requested=len(category_names),
            categories_found=len(categories),
            statistics_requested=len(statistic_names),
            statistics_found=len(statistics),
        )

        return ReferenceSnapshot(
            states_by_name=states,
            categories_by_name=categories,
            statistics_by_name={name: ids[0] for name, ids in statistics.items()},
            data_sources_by_statistic={name: ids[1] for name, ids in statistics.items()},
        )
