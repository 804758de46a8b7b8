"""
Logging utilities for the food matching service
"""

import logging
import functools
import json
import time
from typing import Any, Callable


SENSITIVE_KEYS = ['password', 'token', 'secret', 'key', 'api_key']


def sanitize_log_data(data: dict) -> dict:
	"""
	Sanitize sensitive data from log entries

	Args:
		data: Dictionary containing data to sanitize

	Returns:
		Sanitized dictionary
	"""
	sanitized = {}

	for key, value in data.items():
		if any(sensitive in key.lower() for sensitive in SENSITIVE_KEYS):
			sanitized[key] = '[HIDDEN]'
		elif isinstance(value, dict):
			sanitized[key] = sanitize_log_data(value)
		elif isinstance(value, str) and len(value) > 200:
			sanitized[key] = value[:200] + '...[TRUNCATED]'
		else:
			sanitized[key] = value

	return sanitized


def log_event(logger: logging.Logger, level: int, event: str, **fields) -> None:
	"""
	Emit a structured event as "<event> <json fields>"

	The event name and the sanitized fields are also attached to the record
	(`record.event`, `record.fields`) for handlers that want them raw.
	"""
	if not logger.isEnabledFor(level):
		return
	safe_fields = sanitize_log_data(fields)
	logger.log(
		level,
		f"{event} {json.dumps(safe_fields, default=str, sort_keys=True)}",
		extra={'event': event, 'fields': safe_fields},
	)


def log_api_endpoint(logger_name: str = None):
	"""
	Decorator specifically for API endpoint logging
	"""
	def decorator(func: Callable) -> Callable:
		@functools.wraps(func)
		def wrapper(request, *args, **kwargs) -> Any:
			if logger_name:
				logger = logging.getLogger(logger_name)
			else:
				logger = logging.getLogger('api_requests')

			endpoint = f"{request.method} {request.path}"

			start_time = time.time()
			logger.info(f"API CALL START: {endpoint}")

			try:
				result = func(request, *args, **kwargs)

				execution_time = time.time() - start_time
				status_code = getattr(result, 'status_code', 'Unknown')
				logger.info(f"API CALL SUCCESS: {endpoint} - {status_code} in {execution_time:.3f}s")

				return result

			except Exception as e:
				execution_time = time.time() - start_time
				logger.error(f"API CALL FAILED: {endpoint} after {execution_time:.3f}s: {str(e)}")
				raise

		return wrapper
	return decorator


def log_external_service_call(service_name: str, logger_name: str = None):
	"""
	Decorator for logging external service calls (USDA FoodData Central)
	"""
	def decorator(func: Callable) -> Callable:
		@functools.wraps(func)
		def wrapper(*args, **kwargs) -> Any:
			if logger_name:
				logger = logging.getLogger(logger_name)
			else:
				logger = logging.getLogger(f'{service_name.lower()}_service')

			start_time = time.time()
			func_name = f"{service_name}.{func.__name__}"

			logger.info(f"EXTERNAL CALL START: {func_name}")

			try:
				result = func(*args, **kwargs)

				execution_time = time.time() - start_time
				logger.info(f"EXTERNAL CALL SUCCESS: {func_name} in {execution_time:.3f}s")

				return result

			except Exception as e:
				execution_time = time.time() - start_time
				logger.error(f"EXTERNAL CALL FAILED: {func_name} after {execution_time:.3f}s: {str(e)}")
				raise

		return wrapper
	return decorator


class DatabaseQueryLogger:
	"""
	Context manager for logging database work such as one import batch
	"""

	def __init__(self, operation: str, logger_name: str = 'database'):
		self.operation = operation
		self.logger = logging.getLogger(logger_name)
		self.start_time = None

	def __enter__(self):
		self.start_time = time.time()
		self.logger.debug(f"DATABASE QUERY START: {self.operation}")
		return self

	def __exit__(self, exc_type, exc_val, exc_tb):
		execution_time = time.time() - self.start_time

		if exc_type is None:
			self.logger.debug(f"DATABASE QUERY SUCCESS: {self.operation} in {execution_time:.3f}s")
		else:
			self.logger.error(f"DATABASE QUERY FAILED: {self.operation} after {execution_time:.3f}s: {exc_val}")
