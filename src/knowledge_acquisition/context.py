"""
Request and execution contexts.

``RequestContext`` is what the host hands to the acquisition engine for one
chat turn: the capability registry, named string variables in insertion order,
and the slot holding a serialized proposed plan. ``ExecutionContext`` is
created fresh for every plan execution and never shares variables with the
request that produced the plan.
"""

from dataclasses import dataclass, field
from typing import Iterator, Optional

from .capabilities import CapabilityRegistry
from .plans.models import INPUT_PARAMETER

PROPOSED_PLAN_VARIABLE = "proposedPlan"


@dataclass
class RequestContext:
	"""Variables and capabilities available to one acquisition call."""
	registry: CapabilityRegistry
	variables: dict[str, str] = field(default_factory=dict)

	def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
		return self.variables.get(name, default)

	def set(self, name: str, value: str) -> None:
		self.variables[name] = value

	def __contains__(self, name: str) -> bool:
		return name in self.variables

	def items(self) -> Iterator[tuple[str, str]]:
		return iter(self.variables.items())

	@property
	def proposed_plan_json(self) -> Optional[str]:
		"""The serialized proposed plan carried from a previous turn, if any."""
		return self.variables.get(PROPOSED_PLAN_VARIABLE)

	@proposed_plan_json.setter
	def proposed_plan_json(self, value: str) -> None:
		self.variables[PROPOSED_PLAN_VARIABLE] = value


@dataclass
class ExecutionContext:
	"""Fresh state for a single plan execution."""
	registry: CapabilityRegistry
	variables: dict[str, str] = field(default_factory=dict)

	@property
	def input(self) -> str:
		return self.variables.get(INPUT_PARAMETER, "")

	@input.setter
	def input(self, value: str) -> None:
		self.variables[INPUT_PARAMETER] = value

	@property
	def result(self) -> str:
		"""Output of the last executed step."""
		return self.input
