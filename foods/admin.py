from django.contrib import admin
from .models import Food, FoodAlias, FoodUnit, FoodSearchLog


class FoodUnitInline(admin.TabularInline):
    model = FoodUnit
    extra = 0


@admin.register(Food)
class FoodAdmin(admin.ModelAdmin):
    """Food catalog admin"""

    list_display = (
        "name",
        "brand",
        "source",
        "verification",
        "category_id",
        "calories_per_100g",
        "popularity",
        "created_at",
    )
    list_filter = ("source", "verification", "category_id")
    search_fields = ("name", "brand", "canonical_name", "usda_fdc_id")
    readonly_fields = ("canonical_name", "macro_fingerprint", "created_at", "updated_at")
    date_hierarchy = "created_at"
    inlines = [FoodUnitInline]

    fieldsets = (
        (
            "Identity",
            {
                "fields": (
                    "name",
                    "brand",
                    "canonical_name",
                    "source",
                    "verification",
                    "usda_fdc_id",
                    "popularity",
                )
            },
        ),
        (
            "Nutrition (per 100g)",
            {
                "fields": (
                    "calories_per_100g",
                    "protein_per_100g",
                    "fat_per_100g",
                    "carbs_per_100g",
                    "fiber_per_100g",
                    "sugar_per_100g",
                    "macro_fingerprint",
                )
            },
        ),
        ("Serving", {"fields": ("category_id", "density_gml")}),
        ("Timestamps", {"fields": ("created_at", "updated_at"), "classes": ("collapse",)}),
    )


@admin.register(FoodAlias)
class FoodAliasAdmin(admin.ModelAdmin):
    """Food alias admin"""

    list_display = ("alias", "food", "created_at")
    search_fields = ("alias", "food__name")
    readonly_fields = ("created_at",)

    def get_queryset(self, request):
        return super().get_queryset(request).select_related("food")


@admin.register(FoodSearchLog)
class FoodSearchLogAdmin(admin.ModelAdmin):
    """Search log admin"""

    list_display = (
        "search_query",
        "search_type",
        "results_count",
        "local_count",
        "external_count",
        "top_confidence",
        "created_at",
    )
    list_filter = ("search_type", "created_at")
    search_fields = ("search_query",)
    readonly_fields = ("created_at",)
    date_hierarchy = "created_at"

    def get_queryset(self, request):
        return super().get_queryset(request).select_related("top_food")

    def has_add_permission(self, request):
        """Search logs are written by the search endpoint only"""
        return False
