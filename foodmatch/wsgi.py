"""
WSGI config for foodmatch project.

It exposes the WSGI callable as a module-level variable named ``application``.
"""

import os
import logging

import psutil
from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "foodmatch.settings")

# Set up early logging to capture Django startup
logging.basicConfig(
    level=logging.INFO,
    format="[%(levelname)s] %(asctime)s %(name)s %(process)d %(thread)d - %(message)s",
    force=True,
)

logger = logging.getLogger("startup")
logger.info("[WSGI] Starting Django WSGI application...")

try:
    application = get_wsgi_application()
    logger.info("[WSGI] Django WSGI application created successfully")
except Exception as e:
    logger.error(f"[WSGI] Failed to create Django WSGI application: {e}")
    raise

logger.info("[WSGI] WSGI setup completed")

try:
    process = psutil.Process(os.getpid())
    memory_info = process.memory_info()
    logger.info(f"[MEMORY] Final memory usage: {memory_info.rss / 1024 / 1024:.2f}MB")
except psutil.Error as e:
    logger.warning(f"[MEMORY] Could not read memory usage: {e}")
