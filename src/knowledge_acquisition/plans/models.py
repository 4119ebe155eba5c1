"""
Plan Models - Pydantic schemas for plans carried between chat turns.

A plan is proposed in one turn, serialized into the host's request context,
and executed in a later turn once the user approves it. The JSON produced by
``ProposedPlan.to_json`` is the only wire format; everything in-process works
on these typed models.
"""

import json
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Parameter holding the whole input of a step or plan. Never overwritten from
# request context variables.
INPUT_PARAMETER = "input"


def _stringify_parameters(value: Any) -> Any:
	"""Coerce JSON parameter values to strings; non-dict input is left to validation."""
	if not isinstance(value, dict):
		return value
	parameters = {}
	for name, item in value.items():
		if isinstance(item, str):
			parameters[name] = item
		elif item is None:
			parameters[name] = ""
		else:
			# json.dumps keeps true/false and numbers as the model wrote them
			parameters[name] = json.dumps(item, ensure_ascii=False)
	return parameters


class PlanType(str, Enum):
	"""Where a plan keeps its parameters."""
	ACTION = "Action"  # single step, parameters at plan level
	SEQUENTIAL = "Sequential"  # multi step, parameters per step


class PlanState(str, Enum):
	"""Approval state of a proposed plan."""
	NO_OP = "NoOp"
	APPROVED = "Approved"


class PlanStep(BaseModel):
	"""A single capability invocation within a plan."""
	model_config = ConfigDict(populate_by_name=True)

	skill_name: str = Field(alias="skillName", description="Capability the function belongs to")
	name: str = Field(description="Function name within the capability")
	parameters: dict[str, str] = Field(default_factory=dict)
	description: str = Field(default="")
	outputs: list[str] = Field(default_factory=list, description="Variables that receive the step result")

	@field_validator("parameters", mode="before")
	@classmethod
	def coerce_parameters(cls, value: Any) -> Any:
		return _stringify_parameters(value)

	@property
	def qualified_name(self) -> str:
		return f"{self.skill_name}.{self.name}"


class Plan(BaseModel):
	"""An ordered sequence of steps produced by a planner."""
	model_config = ConfigDict(populate_by_name=True)

	description: str = Field(default="", description="The goal the plan accomplishes")
	steps: list[PlanStep] = Field(default_factory=list)
	parameters: dict[str, str] = Field(default_factory=dict)

	@field_validator("parameters", mode="before")
	@classmethod
	def coerce_parameters(cls, value: Any) -> Any:
		return _stringify_parameters(value)

	@property
	def last_step(self) -> PlanStep | None:
		return self.steps[-1] if self.steps else None

	def function_names(self) -> list[str]:
		"""Ordered ``capability.function`` names of every step in the plan."""
		return [step.qualified_name for step in self.steps]


class ProposedPlan(BaseModel):
	"""A plan awaiting (or having received) user approval."""
	model_config = ConfigDict(populate_by_name=True)

	plan: Plan = Field(alias="proposedPlan")
	type: PlanType = Field(default=PlanType.ACTION)
	state: PlanState = Field(default=PlanState.NO_OP)

	def to_json(self) -> str:
		return self.model_dump_json(by_alias=True)

	@classmethod
	def from_json(cls, text: str) -> "ProposedPlan":
		"""Parse a serialized proposal. Raises pydantic.ValidationError on bad input."""
		return cls.model_validate_json(text)

	def approve(self) -> "ProposedPlan":
		"""Return a copy of this proposal in the approved state."""
		return self.model_copy(update={"state": PlanState.APPROVED})


class MissingFunctionErrorOptions(BaseModel):
	"""Retry settings for plans that reference unavailable functions."""
	model_config = ConfigDict(populate_by_name=True)

	allow_retries: bool = Field(default=True, alias="allowRetries")
	max_retries_allowed: int = Field(default=3, ge=0, alias="maxRetriesAllowed")


class PlannerOptions(BaseModel):
	"""Per-request planner configuration."""
	model_config = ConfigDict(populate_by_name=True)

	type: PlanType = Field(default=PlanType.ACTION)
	allow_retries_on_invalid_plan: bool = Field(default=True, alias="allowRetriesOnInvalidPlan")
	missing_function_error: MissingFunctionErrorOptions = Field(
		default_factory=MissingFunctionErrorOptions,
		alias="missingFunctionError",
	)
