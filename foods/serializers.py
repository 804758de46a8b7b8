"""
Food serializers for ingestion validation and API responses
"""

from rest_framework import serializers
from .models import Food, FoodAlias, FoodUnit, FoodSearchLog


class NutrientAmountsSerializer(serializers.Serializer):
    """Per-100g nutrient amounts of a raw bulk row; missing values read as zero"""

    kcal = serializers.FloatField(required=False, allow_null=True, default=0)
    protein = serializers.FloatField(required=False, allow_null=True, default=0)
    carbs = serializers.FloatField(required=False, allow_null=True, default=0)
    fat = serializers.FloatField(required=False, allow_null=True, default=0)
    fiber = serializers.FloatField(required=False, allow_null=True, default=0)
    sugar = serializers.FloatField(required=False, allow_null=True, default=0)


class RawNutritionRowSerializer(serializers.Serializer):
    """Validates one heterogeneous bulk nutrition row"""

    id = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    description = serializers.CharField(
        required=False, allow_null=True, allow_blank=True, trim_whitespace=False
    )
    name = serializers.CharField(
        required=False, allow_null=True, allow_blank=True, trim_whitespace=False
    )
    brand = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    ingredients = serializers.CharField(
        required=False, allow_null=True, allow_blank=True
    )
    nutrients = NutrientAmountsSerializer(required=False, allow_null=True)


class FoodAliasSerializer(serializers.ModelSerializer):
    """Serializer for food aliases"""

    class Meta:
        model = FoodAlias
        fields = ["id", "alias", "created_at"]
        read_only_fields = ["id", "created_at"]


class FoodUnitSerializer(serializers.ModelSerializer):
    """Serializer for stored serving options"""

    grams = serializers.FloatField()

    class Meta:
        model = FoodUnit
        fields = ["id", "label", "grams"]
        read_only_fields = ["id"]


class FoodSerializer(serializers.ModelSerializer):
    """Serializer for food items"""

    aliases = FoodAliasSerializer(many=True, read_only=True)
    units = FoodUnitSerializer(many=True, read_only=True)

    class Meta:
        model = Food
        fields = [
            "id",
            "name",
            "brand",
            "source",
            "verification",
            "category_id",
            "density_gml",
            "calories_per_100g",
            "protein_per_100g",
            "fat_per_100g",
            "carbs_per_100g",
            "fiber_per_100g",
            "sugar_per_100g",
            "popularity",
            "usda_fdc_id",
            "aliases",
            "units",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class FoodSearchSerializer(serializers.Serializer):
    """Serializer for food search requests"""

    query = serializers.CharField(max_length=500, trim_whitespace=False)


class ImportOptionsSerializer(serializers.Serializer):
    """Serializer for bulk import requests"""

    rows = serializers.ListField(child=serializers.JSONField(), allow_empty=True)
    dry_run = serializers.BooleanField(default=False)
    batch_size = serializers.IntegerField(default=100, min_value=1, max_value=1000)
    skip_duplicates = serializers.BooleanField(default=True)


class ServingOptionSerializer(serializers.Serializer):
    label = serializers.CharField(max_length=100)
    grams = serializers.FloatField(min_value=0)


class ParsedIngredientSerializer(serializers.Serializer):
    qty = serializers.FloatField(min_value=0)
    unit = serializers.CharField(
        max_length=50, required=False, allow_null=True, allow_blank=True
    )
    raw_unit = serializers.CharField(
        max_length=50, required=False, allow_null=True, allow_blank=True
    )
    name = serializers.CharField(max_length=200, required=False, allow_blank=True, default="")
    multiplier = serializers.FloatField(required=False, default=1, min_value=0)


class ResolveGramsSerializer(serializers.Serializer):
    """Serializer for grams resolution requests"""

    parsed = ParsedIngredientSerializer()
    food_id = serializers.IntegerField(required=False, allow_null=True)
    density_gml = serializers.FloatField(required=False, allow_null=True, min_value=0)
    serving_options = ServingOptionSerializer(many=True, required=False, default=list)


class FoodSearchLogSerializer(serializers.ModelSerializer):
    """Serializer for food search logs"""

    class Meta:
        model = FoodSearchLog
        fields = [
            "id",
            "search_query",
            "results_count",
            "local_count",
            "external_count",
            "top_food",
            "top_confidence",
            "search_type",
            "created_at",
        ]
        read_only_fields = fields
