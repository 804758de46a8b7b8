"""
Food API views
"""

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAdminUser
from rest_framework.response import Response
from django.db import DatabaseError
import logging

from foodmatch.logging_utils import log_api_endpoint

from .exceptions import QueryValidationError
from .grams import derive_serving_options, resolve_grams
from .importer import BulkFoodImporter
from .models import Food, FoodSearchLog
from .repository import to_record
from .search import search_foods as run_search
from .serializers import (
    FoodSerializer,
    FoodSearchSerializer,
    FoodSearchLogSerializer,
    ImportOptionsSerializer,
    ResolveGramsSerializer,
)
from .types import ParsedIngredientLine, ServingOption

logger = logging.getLogger(__name__)


def _error(code: str, message: str, http_status, details=None) -> Response:
    error = {"code": code, "message": message}
    if details is not None:
        error["details"] = details
    return Response({"success": False, "error": error}, status=http_status)


def _log_search(query: str, payload: dict) -> None:
    data = payload["data"]
    try:
        FoodSearchLog.objects.create(
            search_query=query[:500],
            search_type="text",
            results_count=len(data),
            local_count=payload["sources"]["local"],
            external_count=payload["sources"]["external"],
            top_food_id=data[0]["id"] if data else None,
            top_confidence=data[0]["confidence"] if data else None,
        )
    except DatabaseError as e:
        logger.warning(f"Could not log search: {e}")


@api_view(["GET"])
@permission_classes([AllowAny])
@log_api_endpoint()
def search_foods(request):
    """Ranked food search, backfilled from USDA when the catalog has few hits"""

    serializer = FoodSearchSerializer(
        data={"query": request.GET.get("s", request.GET.get("query", ""))}
    )
    if not serializer.is_valid():
        return _error(
            "VALIDATION_ERROR",
            "Query parameter is required",
            status.HTTP_400_BAD_REQUEST,
            serializer.errors,
        )

    query = serializer.validated_data["query"]
    try:
        payload = run_search(query)
    except QueryValidationError as e:
        return _error(e.code, str(e), status.HTTP_400_BAD_REQUEST)
    except Exception as e:
        logger.error(f"Food search failed for '{query}': {e}", exc_info=True)
        return _error(
            "SERVER_ERROR",
            "An error occurred while searching foods",
            status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    _log_search(query, payload)
    return Response(payload, status=status.HTTP_200_OK)


@api_view(["GET"])
@permission_classes([AllowAny])
def get_food_details(request, food_id):
    """Get a stored food with its aliases, units and derived serving options"""

    try:
        food = Food.objects.prefetch_related("aliases", "units").get(id=food_id)
    except Food.DoesNotExist:
        return _error("NOT_FOUND", "Food not found", status.HTTP_404_NOT_FOUND)

    record = to_record(food)
    data = FoodSerializer(food).data
    data["servingOptions"] = [
        option.to_dict()
        for option in derive_serving_options(
            record.serving_options, record.density_gml, record.category_id
        )
    ]
    return Response({"success": True, "data": data}, status=status.HTTP_200_OK)


@api_view(["POST"])
@permission_classes([IsAdminUser])
@log_api_endpoint()
def import_foods(request):
    """Bulk import USDA rows (staff only)"""

    serializer = ImportOptionsSerializer(data=request.data)
    if not serializer.is_valid():
        return _error(
            "VALIDATION_ERROR",
            "Invalid import request",
            status.HTTP_400_BAD_REQUEST,
            serializer.errors,
        )

    options = serializer.validated_data
    result = BulkFoodImporter().import_rows(
        options["rows"],
        dry_run=options["dry_run"],
        batch_size=options["batch_size"],
        skip_duplicates=options["skip_duplicates"],
    )
    return Response({"success": True, "data": result.to_dict()}, status=status.HTTP_200_OK)


@api_view(["POST"])
@permission_classes([AllowAny])
@log_api_endpoint()
def resolve_food_grams(request):
    """Resolve a parsed ingredient quantity to grams"""

    serializer = ResolveGramsSerializer(data=request.data)
    if not serializer.is_valid():
        return _error(
            "VALIDATION_ERROR",
            "Invalid grams request",
            status.HTTP_400_BAD_REQUEST,
            serializer.errors,
        )

    data = serializer.validated_data
    parsed = ParsedIngredientLine(
        qty=data["parsed"]["qty"],
        unit=data["parsed"].get("unit") or None,
        name=data["parsed"].get("name", ""),
        raw_unit=data["parsed"].get("raw_unit") or None,
        multiplier=data["parsed"].get("multiplier", 1),
    )
    density = data.get("density_gml")
    options = [ServingOption(o["label"], o["grams"]) for o in data["serving_options"]]

    if data.get("food_id") is not None:
        food = Food.objects.prefetch_related("units").filter(id=data["food_id"]).first()
        if food is None:
            return _error("NOT_FOUND", "Food not found", status.HTTP_404_NOT_FOUND)
        record = to_record(food)
        density = density or record.density_gml
        options = options or derive_serving_options(
            record.serving_options, record.density_gml, record.category_id
        )

    resolution = resolve_grams(parsed, density, options)
    return Response({"success": True, "data": resolution.to_dict()}, status=status.HTTP_200_OK)


@api_view(["GET"])
@permission_classes([AllowAny])
def get_search_history(request):
    """Recent searches with their top match"""

    try:
        limit = int(request.GET.get("limit", 20))
    except ValueError:
        limit = 0
    if limit < 1:
        return _error(
            "VALIDATION_ERROR", "limit must be a positive integer", status.HTTP_400_BAD_REQUEST
        )
    limit = min(limit, 100)

    searches = FoodSearchLog.objects.all()[:limit]
    return Response(
        {"success": True, "data": FoodSearchLogSerializer(searches, many=True).data},
        status=status.HTTP_200_OK,
    )
