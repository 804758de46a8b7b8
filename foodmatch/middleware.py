"""
Request logging for the food matching API
"""

import logging
import time
from django.utils.deprecation import MiddlewareMixin

from .logging_utils import log_event

api_logger = logging.getLogger('api_requests')

SKIPPED_PREFIXES = ('/static/', '/admin/', '/health/', '/api/v1/health/')

# Query parameters that carry a food search string
SEARCH_PARAMS = ('s', 'query')


class RequestLoggingMiddleware(MiddlewareMixin):
	"""
	Logs each API request as `api_request` / `api_response` events

	Search requests also carry the search text, so slow or failing
	lookups can be traced back to the query that caused them.
	"""

	def _skipped(self, request):
		return request.path == '/' or request.path.startswith(SKIPPED_PREFIXES)

	def _request_fields(self, request):
		fields = {
			'method': request.method,
			'path': request.path,
		}
		search = next((request.GET[name] for name in SEARCH_PARAMS if request.GET.get(name)), None)
		if search is not None:
			fields['search'] = search[:200]
		return fields

	def _elapsed_ms(self, request):
		start_time = getattr(request, 'start_time', None)
		if start_time is None:
			return 0
		return round((time.time() - start_time) * 1000, 2)

	def process_request(self, request):
		request.start_time = time.time()
		if self._skipped(request):
			return None

		log_event(
			api_logger,
			logging.INFO,
			'api_request',
			ip=self.get_client_ip(request),
			**self._request_fields(request),
		)
		return None

	def process_response(self, request, response):
		if self._skipped(request):
			return response

		if response.status_code >= 500:
			level = logging.ERROR
		elif response.status_code >= 400:
			level = logging.WARNING
		else:
			level = logging.INFO

		log_event(
			api_logger,
			level,
			'api_response',
			status_code=response.status_code,
			response_time_ms=self._elapsed_ms(request),
			**self._request_fields(request),
		)
		return response

	def process_exception(self, request, exception):
		log_event(
			api_logger,
			logging.ERROR,
			'api_exception',
			exception_type=type(exception).__name__,
			exception_message=str(exception),
			response_time_ms=self._elapsed_ms(request),
			**self._request_fields(request),
		)
		return None

	def get_client_ip(self, request):
		"""Get the client's IP address"""
		x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
		if x_forwarded_for:
			ip = x_forwarded_for.split(',')[0].strip()
		else:
			ip = request.META.get('REMOTE_ADDR')
		return ip
