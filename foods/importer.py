"""
Batched bulk import of USDA nutrition rows

Rows are processed strictly in order, one batch at a time. A bad row is
counted and logged; it never stops the run.
"""

import logging
import threading
from itertools import islice
from typing import Any, Iterable, Iterator, List, Optional

from foodmatch.logging_utils import DatabaseQueryLogger, log_event

from .config import MatchingConfig, get_matching_config
from .exceptions import PersistenceWriteError, RowProcessingError, SkippedRow
from .identity import canonicalize_name, generate_aliases
from .normalizer import normalize_row
from .repository import FoodRepository
from .types import SOURCE_USDA, VERIFIED, ImportResult, PerHundredGram

logger = logging.getLogger(__name__)

# Serving options attached to every imported food of a category
DEFAULT_UNITS = {
    "oil": (("1 tbsp", 13.6), ("1 tsp", 4.5)),
    "flour": (("1 cup", 120.0), ("1 tbsp", 8.0)),
    "starch": (("1 cup", 120.0), ("1 tbsp", 8.0)),
    "whey": (("1 scoop", 32.0), ("1 tbsp", 8.0)),
    "liquid": (("1 cup", 240.0), ("1 tbsp", 15.0)),
    "grain": (("1 cup", 185.0), ("1 tbsp", 12.0)),
    "oats": (("1 cup", 90.0), ("1 tbsp", 6.0)),
    "rice": (("1 cup", 185.0), ("1 tbsp", 12.0)),
    "sugar": (("1 tbsp", 12.5), ("1 tsp", 4.2)),
}


def _batches(rows: Iterable[Any], size: int) -> Iterator[List[Any]]:
    iterator = iter(rows)
    while True:
        batch = list(islice(iterator, size))
        if not batch:
            return
        yield batch


def _row_id(row: Any) -> Any:
    if isinstance(row, dict):
        return row.get("id")
    return getattr(row, "id", None)


class BulkFoodImporter:
    """Normalize, dedupe and store bulk rows as verified USDA foods"""

    def __init__(
        self,
        repository: Optional[FoodRepository] = None,
        config: Optional[MatchingConfig] = None,
    ):
        self.config = config or get_matching_config()
        self.repository = repository or FoodRepository(self.config.dedupe, self.config.imports)

    def import_rows(
        self,
        rows: Iterable[Any],
        dry_run: bool = False,
        batch_size: Optional[int] = None,
        skip_duplicates: bool = True,
        cancel_event: Optional[threading.Event] = None,
    ) -> ImportResult:
        """
        Import rows in sequential batches

        Args:
                rows: raw bulk rows (dicts or RawNutritionRow values)
                dry_run: run every check but write nothing
                batch_size: rows per batch
                skip_duplicates: skip rows matching an existing USDA food
                cancel_event: when set, stops before the next row

        Returns:
                ImportResult with created/skipped/errors counters
        """
        batch_size = batch_size or self.config.imports.batch_size
        progress_every = self.config.imports.progress_every_batches
        result = ImportResult()

        log_event(
            logger,
            logging.INFO,
            "usda_import_start",
            dryRun=dry_run,
            batchSize=batch_size,
            skipDuplicates=skip_duplicates,
        )

        processed = 0
        for batch_number, batch in enumerate(_batches(rows, batch_size), start=1):
            with DatabaseQueryLogger(f"usda import batch {batch_number}"):
                batch_result = self._import_batch(batch, dry_run, skip_duplicates, cancel_event)
            result.add(batch_result)
            processed += batch_result.created + batch_result.skipped + batch_result.errors

            if batch_result.cancelled:
                result.cancelled = True
                log_event(
                    logger,
                    logging.WARNING,
                    "usda_import_cancelled",
                    processed=processed,
                    **result.to_dict(),
                )
                break

            if batch_number % progress_every == 0:
                log_event(
                    logger,
                    logging.INFO,
                    "usda_import_progress",
                    batches=batch_number,
                    processed=processed,
                    created=result.created,
                    skipped=result.skipped,
                    errors=result.errors,
                )

        log_event(logger, logging.INFO, "usda_import_complete", **result.to_dict())
        return result

    def _import_batch(
        self,
        batch: List[Any],
        dry_run: bool,
        skip_duplicates: bool,
        cancel_event: Optional[threading.Event],
    ) -> ImportResult:
        result = ImportResult()
        for row in batch:
            if cancel_event is not None and cancel_event.is_set():
                result.cancelled = True
                break

            row_id = _row_id(row)
            try:
                self.import_row(row, dry_run=dry_run, skip_duplicates=skip_duplicates)
                result.created += 1
            except SkippedRow as skip:
                logger.debug(f"Skipped row {skip.row_id}: {skip.reason}")
                result.skipped += 1
            except Exception as e:
                error = RowProcessingError(row_id, e)
                log_event(
                    logger,
                    logging.WARNING,
                    "usda_import_row_error",
                    id=row_id,
                    error=str(error.original),
                )
                result.errors += 1
        return result

    def import_row(self, row: Any, dry_run: bool = False, skip_duplicates: bool = True) -> Optional[PerHundredGram]:
        """
        Import one row; raises SkippedRow for invalid or duplicate rows

        Returns the normalized record that was (or in a dry run, would be) stored.
        """
        row_id = _row_id(row)
        per100g = normalize_row(row)
        if per100g is None:
            raise SkippedRow("invalid or zero-energy row", row_id)
        if not canonicalize_name(per100g.name):
            raise SkippedRow("empty name", row_id)

        if skip_duplicates:
            existing = self.repository.find_by_exact_name_or_macro_range(
                per100g.name, per100g.macros, SOURCE_USDA
            )
            if existing is not None:
                raise SkippedRow(f"duplicate of food {existing.id}", row_id)

        if dry_run:
            return per100g

        food = self.repository.create_food_record(
            per100g,
            source=SOURCE_USDA,
            verification=VERIFIED,
            popularity=self.config.imports.popularity,
        )

        for alias in sorted(generate_aliases(per100g.name, self.config.dedupe)):
            self._store_quietly(self.repository.create_alias, food.id, alias)

        for label, grams in DEFAULT_UNITS.get(per100g.category_id, ()):
            self._store_quietly(self.repository.create_serving_option, food.id, label, grams)

        return per100g

    def _store_quietly(self, write, *args) -> None:
        """Alias and unit writes never fail the row"""
        try:
            write(*args)
        except PersistenceWriteError as e:
            if e.unique_violation:
                logger.debug(f"Ignoring duplicate: {e}")
            else:
                logger.warning(f"Failed to store {args[1:]!r} for food {args[0]}: {e}")


def import_batch(rows: Iterable[Any], **options) -> ImportResult:
    """Import rows with a default importer; options as BulkFoodImporter.import_rows"""
    return BulkFoodImporter().import_rows(rows, **options)
