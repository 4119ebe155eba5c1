"""Plans module - plan, step and proposal models carried between chat turns."""

from .models import (
	MissingFunctionErrorOptions,
	Plan,
	PlannerOptions,
	PlanState,
	PlanStep,
	PlanType,
	ProposedPlan,
)

__all__ = [
	"Plan",
	"PlanStep",
	"PlanType",
	"PlanState",
	"ProposedPlan",
	"PlannerOptions",
	"MissingFunctionErrorOptions",
]
