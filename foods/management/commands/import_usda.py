"""
Django management command to bulk import USDA foods
"""

import json
import logging
import signal
import threading
from pathlib import Path
from typing import Any, Dict, Iterator, List

from django.core.management.base import BaseCommand, CommandError

from foods.exceptions import ExternalServiceError
from foods.importer import BulkFoodImporter
from foods.normalizer import fdc_to_raw_row
from foods.usda_service import get_usda_service

# Top-level keys of the FoodData Central download files
FDC_EXPORT_KEYS = ("FoundationFoods", "SRLegacyFoods", "SurveyFoods", "BrandedFoods")

logger = logging.getLogger(__name__)


def _as_row(item: Any) -> Any:
    """FDC food payloads become bulk rows, anything else passes through"""
    if isinstance(item, dict) and "foodNutrients" in item:
        return fdc_to_raw_row(item)
    return item


def read_rows(path: Path) -> Iterator[Any]:
    """Rows from a JSON array, an FDC export file or a JSON-lines file"""
    if path.suffix in (".jsonl", ".ndjson"):
        with path.open(encoding="utf-8") as handle:
            for line in handle:
                line = line.strip()
                if not line:
                    continue
                try:
                    item = json.loads(line)
                except json.JSONDecodeError as e:
                    logger.warning(f"Unreadable JSON line in {path.name}: {e}")
                    # passed on as text so the importer counts it as skipped
                    yield line
                    continue
                yield _as_row(item)
        return

    with path.open(encoding="utf-8") as handle:
        data = json.load(handle)

    if isinstance(data, dict):
        items: List[Any] = []
        for key in FDC_EXPORT_KEYS:
            items.extend(data.get(key) or [])
        if not items and "foods" in data:
            items = data["foods"]
        data = items

    for item in data:
        yield _as_row(item)


class Command(BaseCommand):
    help = "Import USDA foods from a bulk file or from FoodData Central ids"

    def add_arguments(self, parser):
        parser.add_argument("path", nargs="?", type=str, help="JSON, JSON-lines or FDC export file")
        parser.add_argument(
            "--fdc-ids", type=str, help="Comma separated FDC ids to fetch from the API"
        )
        parser.add_argument(
            "--dry-run", action="store_true", help="Run all checks without writing"
        )
        parser.add_argument("--batch-size", type=int, default=None, help="Rows per batch")
        parser.add_argument(
            "--no-skip-duplicates",
            action="store_true",
            help="Import rows even when a matching USDA food exists",
        )

    def handle(self, *args, **options):
        """Handle the command"""

        if not options["path"] and not options["fdc_ids"]:
            raise CommandError("Provide a file path or --fdc-ids")

        rows = self._collect_rows(options)

        cancel_event = threading.Event()
        previous_handler = signal.signal(signal.SIGINT, lambda *_: cancel_event.set())
        try:
            result = BulkFoodImporter().import_rows(
                rows,
                dry_run=options["dry_run"],
                batch_size=options["batch_size"],
                skip_duplicates=not options["no_skip_duplicates"],
                cancel_event=cancel_event,
            )
        finally:
            signal.signal(signal.SIGINT, previous_handler)

        self.stdout.write("=" * 50)
        self.stdout.write(f"   • Created: {result.created}")
        self.stdout.write(f"   • Skipped: {result.skipped}")
        self.stdout.write(f"   • Errors: {result.errors}")
        self.stdout.write(f"   • Total: {result.created + result.skipped + result.errors}")

        if result.cancelled:
            self.stdout.write(self.style.WARNING("Import cancelled, committed rows were kept"))
        elif options["dry_run"]:
            self.stdout.write(self.style.SUCCESS("Dry run completed, nothing was written"))
        else:
            self.stdout.write(self.style.SUCCESS("Import completed"))

    def _collect_rows(self, options: Dict[str, Any]) -> Iterator[Any]:
        if options["path"]:
            path = Path(options["path"])
            if not path.exists():
                raise CommandError(f"File not found: {path}")
            yield from read_rows(path)

        if options["fdc_ids"]:
            service = get_usda_service()
            if not service.is_available():
                raise CommandError("USDA API keys not configured")
            for fdc_id in filter(None, (i.strip() for i in options["fdc_ids"].split(","))):
                try:
                    yield fdc_to_raw_row(service.get_food_details(fdc_id))
                except ExternalServiceError as e:
                    self.stdout.write(self.style.ERROR(f"Could not fetch FDC food {fdc_id}: {e}"))
