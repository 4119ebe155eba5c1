"""
Planner error taxonomy and the retry policy applied while creating plans.

Two planner failures are transient and may be retried:
- invalid plan: the model answered with something that is not a plan
- missing function: the plan references a capability function that is not registered

Everything else is fatal for the acquisition call.
"""

from dataclasses import dataclass, replace
from enum import Enum

from ..plans.models import PlannerOptions


class PlanningErrorCode(str, Enum):
	"""Error codes carried by PlanningError."""
	INVALID_GOAL = "InvalidGoal"
	INVALID_PLAN = "InvalidPlan"
	INVALID_CONFIGURATION = "InvalidConfiguration"
	CREATE_PLAN_ERROR = "CreatePlanError"
	UNKNOWN_ERROR = "UnknownError"


class PlanningError(Exception):
	"""Raised when a plan cannot be created."""

	def __init__(self, error_code: PlanningErrorCode, message: str):
		super().__init__(message)
		self.error_code = error_code


class MissingFunctionError(Exception):
	"""Raised when a plan references a function the registry does not expose."""

	def __init__(self, skill_name: str, function_name: str):
		super().__init__(f"Function not available: {skill_name}.{function_name}")
		self.skill_name = skill_name
		self.function_name = function_name


class ErrorKind(str, Enum):
	"""Retry classification of a planner failure."""
	INVALID_PLAN = "invalid_plan"
	MISSING_FUNCTION = "missing_function"
	OTHER = "other"


def _is_invalid_plan(exc: BaseException | None) -> bool:
	return isinstance(exc, PlanningError) and exc.error_code == PlanningErrorCode.INVALID_PLAN


def classify_error(exc: BaseException) -> ErrorKind:
	"""Classify a planner exception for the retry policy."""
	if isinstance(exc, MissingFunctionError):
		return ErrorKind.MISSING_FUNCTION
	if isinstance(exc, PlanningError) and (_is_invalid_plan(exc) or _is_invalid_plan(exc.__cause__)):
		return ErrorKind.INVALID_PLAN
	return ErrorKind.OTHER


@dataclass(frozen=True)
class RetryBudget:
	"""Remaining retries for one acquisition call, tracked per error kind."""
	invalid_plan: int = 0
	missing_function: int = 0

	@classmethod
	def from_options(cls, options: PlannerOptions) -> "RetryBudget":
		missing = options.missing_function_error
		# A zero overall allowance disables the invalid-plan retry too
		invalid_allowed = options.allow_retries_on_invalid_plan and total_retries(options) > 0
		return cls(
			invalid_plan=1 if invalid_allowed else 0,
			missing_function=missing.max_retries_allowed if missing.allow_retries else 0,
		)


def total_retries(options: PlannerOptions) -> int:
	"""Overall retries configured for a call, before any failure has been seen."""
	if options.missing_function_error.allow_retries:
		return options.missing_function_error.max_retries_allowed
	return 1 if options.allow_retries_on_invalid_plan else 0


def decide_retry(kind: ErrorKind, budget: RetryBudget) -> tuple[bool, RetryBudget]:
	"""
	Decide whether to retry after a failure of the given kind.

	Returns:
		Tuple of (retry, updated_budget). The invalid-plan allowance is a
		single shot: once used it is zeroed regardless of other budgets.
	"""
	if kind == ErrorKind.INVALID_PLAN and budget.invalid_plan > 0:
		return True, replace(budget, invalid_plan=0)
	if kind == ErrorKind.MISSING_FUNCTION and budget.missing_function > 0:
		return True, replace(budget, missing_function=budget.missing_function - 1)
	return False, budget
