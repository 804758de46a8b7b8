from django.apps import AppConfig
import logging

logger = logging.getLogger('startup')

class FoodsConfig(AppConfig):
	default_auto_field = 'django.db.models.BigAutoField'
	name = 'foods'

	def ready(self):
		logger.info(f"[STARTUP] {self.name} app is ready")
		from .config import get_matching_config
		# Fail at startup on a misspelled FOOD_MATCHING key
		config = get_matching_config()
		logger.info(f"[STARTUP] Food matching config loaded: {config}")
