from django.db import models


class Food(models.Model):
	"""Food items with per-100g nutritional information"""
	SOURCE_CHOICES = [
		('template', 'Template'),
		('usda', 'USDA Bulk Import'),
		('community', 'Community'),
		('fdc-live', 'FoodData Central (live)'),
	]
	VERIFICATION_CHOICES = [
		('verified', 'Verified'),
		('unverified', 'Unverified'),
		('suspect', 'Suspect'),
	]

	name = models.CharField(max_length=200)
	canonical_name = models.CharField(max_length=200, db_index=True, help_text="Lowercased, punctuation-free name used for dedup")
	brand = models.CharField(max_length=100, null=True, blank=True)
	source = models.CharField(max_length=20, choices=SOURCE_CHOICES, default='community')
	verification = models.CharField(max_length=20, choices=VERIFICATION_CHOICES, default='unverified')
	category_id = models.CharField(max_length=50, null=True, blank=True, help_text="Classification token, e.g. oil, flour")
	density_gml = models.DecimalField(max_digits=6, decimal_places=3, null=True, blank=True, help_text="Grams per milliliter")
	calories_per_100g = models.DecimalField(max_digits=8, decimal_places=2)
	protein_per_100g = models.DecimalField(max_digits=8, decimal_places=2, default=0)
	fat_per_100g = models.DecimalField(max_digits=8, decimal_places=2, default=0)
	carbs_per_100g = models.DecimalField(max_digits=8, decimal_places=2, default=0)
	fiber_per_100g = models.DecimalField(max_digits=8, decimal_places=2, null=True, blank=True)
	sugar_per_100g = models.DecimalField(max_digits=8, decimal_places=2, null=True, blank=True)
	popularity = models.IntegerField(default=0, help_text="Ranking tiebreak weight")
	macro_fingerprint = models.CharField(max_length=16, db_index=True, blank=True, default='')
	usda_fdc_id = models.CharField(max_length=20, null=True, blank=True, unique=True, help_text="USDA FoodData Central ID")
	created_at = models.DateTimeField(auto_now_add=True)
	updated_at = models.DateTimeField(auto_now=True)

	class Meta:
		ordering = ['name']
		indexes = [
			models.Index(fields=['name']),
			models.Index(fields=['source']),
			models.Index(fields=['-popularity']),
		]
		constraints = [
			models.CheckConstraint(condition=models.Q(calories_per_100g__gt=0), name='food_kcal_positive'),
		]

	def __str__(self):
		return self.name


class FoodAlias(models.Model):
	"""Alternative names for foods to improve search"""
	food = models.ForeignKey(Food, on_delete=models.CASCADE, related_name='aliases')
	alias = models.CharField(max_length=200)
	created_at = models.DateTimeField(auto_now_add=True)

	class Meta:
		verbose_name_plural = "Food Aliases"
		indexes = [
			models.Index(fields=['alias']),
		]
		constraints = [
			models.UniqueConstraint(fields=['food', 'alias'], name='unique_food_alias'),
		]

	def __str__(self):
		return f"{self.alias} -> {self.food.name}"


class FoodUnit(models.Model):
	"""Food-specific serving option, e.g. "1 tbsp" = 13.6 g"""
	food = models.ForeignKey(Food, on_delete=models.CASCADE, related_name='units')
	label = models.CharField(max_length=50)
	grams = models.DecimalField(max_digits=8, decimal_places=2)
	created_at = models.DateTimeField(auto_now_add=True)

	class Meta:
		ordering = ['id']
		constraints = [
			models.UniqueConstraint(fields=['food', 'label'], name='unique_food_unit_label'),
		]

	def __str__(self):
		return f"{self.label} ({self.grams} g) -> {self.food.name}"


class FoodSearchLog(models.Model):
	"""Log of food searches for analytics"""
	SEARCH_TYPE_CHOICES = [
		('text', 'Text Search'),
		('mapping', 'Ingredient Mapping'),
	]

	search_query = models.CharField(max_length=500)
	results_count = models.IntegerField(default=0)
	local_count = models.IntegerField(default=0)
	external_count = models.IntegerField(default=0)
	top_food = models.ForeignKey(Food, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
	top_confidence = models.FloatField(null=True, blank=True)
	search_type = models.CharField(max_length=20, choices=SEARCH_TYPE_CHOICES, default='text')
	created_at = models.DateTimeField(auto_now_add=True)

	class Meta:
		ordering = ['-created_at']
		indexes = [
			models.Index(fields=['search_type']),
			models.Index(fields=['created_at']),
		]

	def __str__(self):
		return f"{self.search_query} ({self.search_type})"
