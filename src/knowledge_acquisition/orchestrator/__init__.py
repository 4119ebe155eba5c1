"""Orchestrator module - planning, retries, execution and acquisition."""

from .acquisition import ExternalInformationAcquirer
from .executor import PlanExecutor, SequentialPlanExecutor
from .planner import LLMPlanner, PlannerClient
from .retry import (
	ErrorKind,
	MissingFunctionError,
	PlanningError,
	PlanningErrorCode,
	RetryBudget,
	classify_error,
	decide_retry,
)

__all__ = [
	"ExternalInformationAcquirer",
	"PlanExecutor",
	"SequentialPlanExecutor",
	"LLMPlanner",
	"PlannerClient",
	"ErrorKind",
	"MissingFunctionError",
	"PlanningError",
	"PlanningErrorCode",
	"RetryBudget",
	"classify_error",
	"decide_retry",
]
