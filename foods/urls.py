from django.urls import path
from . import views

urlpatterns = [
	# Food search and details
	path('search/', views.search_foods, name='search_foods'),
	path('<int:food_id>/', views.get_food_details, name='get_food_details'),

	# Bulk import and grams resolution
	path('import/', views.import_foods, name='import_foods'),
	path('resolve-grams/', views.resolve_food_grams, name='resolve_food_grams'),

	# Search history
	path('search/history/', views.get_search_history, name='get_search_history'),
]
