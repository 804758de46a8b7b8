"""
USDA FoodData Central API integration service
"""

import json
import requests
import time
from django.conf import settings
from typing import Any, Dict, List, Optional
import logging

from foodmatch.logging_utils import log_external_service_call

from .exceptions import ExternalServiceError
from .normalizer import fdc_to_raw_row, normalize_row
from .types import SOURCE_FDC_LIVE, ExternalFoodRecord

logger = logging.getLogger(__name__)


def to_external_record(fdc_food: Dict[str, Any]) -> Optional[ExternalFoodRecord]:
    """Normalize one FDC food payload; None when it has no usable energy value"""
    raw = fdc_to_raw_row(fdc_food)
    if raw is None or raw.get("id") is None:
        return None
    per100g = normalize_row(raw)
    if per100g is None or not per100g.name:
        return None
    return ExternalFoodRecord(
        external_id=str(raw["id"]),
        name=per100g.name,
        brand=per100g.brand,
        source=SOURCE_FDC_LIVE,
        per100g=per100g,
    )


class USDANutritionService:
    """USDA FoodData Central API client with key rotation"""

    def __init__(self, api_keys: Optional[List[str]] = None):
        self.api_keys = api_keys if api_keys is not None else self._load_api_keys()
        self.current_key_index = 0
        self.base_url = "https://api.nal.usda.gov/fdc/v1"
        self.timeout = getattr(settings, "USDA_API_TIMEOUT", 30)
        self.page_size = getattr(settings, "USDA_SEARCH_PAGE_SIZE", 25)

    def _load_api_keys(self) -> List[str]:
        """Load USDA API keys from settings"""
        api_keys = []

        # Single API key
        single_key = getattr(settings, "USDA_API_KEY", None)
        if single_key:
            api_keys.append(single_key)

        # Multiple API keys (JSON array)
        keys_json = getattr(settings, "USDA_API_KEYS", "[]")
        if isinstance(keys_json, str):
            try:
                api_keys.extend(json.loads(keys_json))
            except json.JSONDecodeError:
                logger.warning("USDA_API_KEYS is not a valid JSON array, ignoring it")
        elif isinstance(keys_json, (list, tuple)):
            api_keys.extend(keys_json)

        # Remove duplicates while preserving order
        seen = set()
        unique_keys = []
        for key in api_keys:
            if key and key not in seen:
                seen.add(key)
                unique_keys.append(key)

        return unique_keys

    def is_available(self) -> bool:
        """Check if USDA service is available"""
        return len(self.api_keys) > 0

    def get_current_api_key(self) -> Optional[str]:
        """Get current API key"""
        if not self.api_keys:
            return None
        return self.api_keys[self.current_key_index]

    def rotate_api_key(self):
        """Rotate to next API key"""
        if len(self.api_keys) <= 1:
            return
        self.current_key_index = (self.current_key_index + 1) % len(self.api_keys)
        logger.info(
            f"Rotated to API key {self.current_key_index + 1}/{len(self.api_keys)}"
        )

    def _get(self, url: str, params: Dict[str, Any]) -> Any:
        """GET with one key rotation on rate limiting; raises ExternalServiceError"""
        if not self.is_available():
            raise ExternalServiceError("USDA API keys not configured")

        params = {**params, "api_key": self.get_current_api_key()}
        try:
            response = requests.get(url, params=params, timeout=self.timeout)

            # Handle rate limiting
            if response.status_code == 429:
                logger.warning("USDA API rate limit reached, rotating key...")
                self.rotate_api_key()
                params["api_key"] = self.get_current_api_key()
                time.sleep(1)  # Brief delay before retry
                response = requests.get(url, params=params, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            logger.error(f"USDA API request failed: {e}")
            raise ExternalServiceError(f"Network error: {e}") from e

        if response.status_code != 200:
            logger.error(f"USDA API error: {response.status_code} - {response.text[:200]}")
            raise ExternalServiceError(
                f"USDA API returned status {response.status_code}"
            )

        try:
            return response.json()
        except ValueError as e:
            raise ExternalServiceError(f"USDA API returned invalid JSON: {e}") from e

    @log_external_service_call("USDA")
    def search_foods(self, query: str, page_size: Optional[int] = None, page_number: int = 1) -> Dict:
        """
        Search for foods in USDA database

        Args:
                query (str): Search query
                page_size (int): Number of results per page (max 200)
                page_number (int): Page number (starts from 1)

        Returns:
                dict: Raw search payload from the USDA API
        """
        params = {
            "query": query,
            "pageSize": min(page_size or self.page_size, 200),  # USDA API limit
            "pageNumber": page_number,
        }
        data = self._get(f"{self.base_url}/foods/search", params)
        if not isinstance(data, dict):
            raise ExternalServiceError("USDA search returned an unexpected payload")
        return data

    @log_external_service_call("USDA")
    def get_food_details(self, fdc_id: str) -> Dict:
        """
        Get detailed nutrition information for a specific food

        Args:
                fdc_id (str): Food Data Central ID

        Returns:
                dict: Raw food payload from the USDA API
        """
        data = self._get(f"{self.base_url}/food/{fdc_id}", {})
        if not isinstance(data, dict):
            raise ExternalServiceError(f"USDA food {fdc_id} returned an unexpected payload")
        return data

    def search_by_text(self, query: str) -> List[ExternalFoodRecord]:
        """Search FDC and normalize every usable hit"""
        data = self.search_foods(query)
        records = []
        for food in data.get("foods") or []:
            record = to_external_record(food)
            if record is None:
                description = food.get("description") if isinstance(food, dict) else None
                logger.debug(f"Skipping unusable USDA food: {description or 'Unknown'}")
                continue
            records.append(record)
        logger.info(f"USDA search '{query}' returned {len(records)} usable foods")
        return records


# Global service instance
_usda_service = None


def get_usda_service() -> USDANutritionService:
    """Get global USDA service instance"""
    global _usda_service
    if _usda_service is None:
        _usda_service = USDANutritionService()
    return _usda_service
