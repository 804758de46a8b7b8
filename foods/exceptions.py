"""
Error types raised inside the food matching engine

Only QueryValidationError is meant to reach API callers; the rest are
caught by the importer and the search backfill and reported through
counters and logs.
"""


class FoodMatchingError(Exception):
	"""Base class for engine errors"""
	code = "SERVER_ERROR"


class QueryValidationError(FoodMatchingError):
	"""Search query rejected before any lookup"""
	code = "VALIDATION_ERROR"


class SkippedRow(FoodMatchingError):
	"""Import row that is invalid or already present"""

	def __init__(self, reason: str, row_id=None):
		super().__init__(reason)
		self.reason = reason
		self.row_id = row_id


class RowProcessingError(FoodMatchingError):
	"""Unexpected failure while importing a single row"""

	def __init__(self, row_id, original: Exception):
		super().__init__(f"Row {row_id} failed: {original}")
		self.row_id = row_id
		self.original = original


class PersistenceWriteError(FoodMatchingError):
	"""Alias or serving unit could not be stored"""

	def __init__(self, message: str, unique_violation: bool = False):
		super().__init__(message)
		self.unique_violation = unique_violation


class ExternalServiceError(FoodMatchingError):
	"""External nutrition database call failed"""
	code = "EXTERNAL_SERVICE_ERROR"
