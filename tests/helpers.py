"""Shared test fakes and builders for knowledge-acquisition tests."""

from typing import Optional, Union

from knowledge_acquisition.capabilities import CapabilityRegistry
from knowledge_acquisition.context import ExecutionContext, RequestContext
from knowledge_acquisition.plans.models import (
	Plan,
	PlanState,
	PlanStep,
	PlanType,
	ProposedPlan,
)


def char_count(text: str) -> int:
	"""Deterministic token counter: one token per character."""
	return len(text)


def make_registry(functions: Optional[dict[str, dict]] = None) -> CapabilityRegistry:
	"""Build a registry from {"Capability": {"Function": callable}}."""
	registry = CapabilityRegistry()
	for capability_name, fns in (functions or {}).items():
		capability = registry.add(capability_name)
		for fn_name, fn in fns.items():
			capability.add_function(fn, name=fn_name)
	return registry


def default_registry() -> CapabilityRegistry:
	def list_pulls(owner: str = "", repo: str = "") -> str:
		return "[]"

	def get_issue(key: str = "") -> str:
		return "{}"

	return make_registry({
		"GitHubPlugin": {"ListPulls": list_pulls},
		"JiraPlugin": {"GetIssue": get_issue},
	})


def make_plan(
	steps: Optional[list[PlanStep]] = None,
	parameters: Optional[dict[str, str]] = None,
) -> Plan:
	"""Create a Plan with one GitHub step unless steps are given."""
	if steps is None:
		steps = [
			PlanStep(
				skill_name="GitHubPlugin",
				name="ListPulls",
				parameters={"owner": "planner-owner", "repo": "planner-repo"},
			),
		]
	return Plan(description="List pull requests", steps=steps, parameters=parameters or {})


def make_proposal(
	plan: Optional[Plan] = None,
	state: PlanState = PlanState.APPROVED,
	plan_type: PlanType = PlanType.ACTION,
) -> ProposedPlan:
	return ProposedPlan(plan=plan or make_plan(), type=plan_type, state=state)


def make_context(
	registry: Optional[CapabilityRegistry] = None,
	variables: Optional[dict[str, str]] = None,
	proposal: Optional[ProposedPlan] = None,
) -> RequestContext:
	context = RequestContext(
		registry=registry if registry is not None else default_registry(),
		variables=dict(variables or {}),
	)
	if proposal is not None:
		context.proposed_plan_json = proposal.to_json()
	return context


class ScriptedPlanner:
	"""Planner returning (or raising) scripted outcomes in order."""

	def __init__(self, *outcomes: Union[Plan, Exception, None]):
		self.outcomes = list(outcomes)
		self.goals: list[str] = []

	@property
	def calls(self) -> int:
		return len(self.goals)

	async def create_plan(self, goal: str) -> Plan:
		self.goals.append(goal)
		outcome = self.outcomes.pop(0)
		if isinstance(outcome, Exception):
			raise outcome
		return outcome


class RecordingExecutor:
	"""Executor that records its inputs and returns a canned result."""

	def __init__(self, result: str = "plan result"):
		self.result = result
		self.plans: list[Plan] = []
		self.contexts: list[ExecutionContext] = []

	async def invoke(self, plan: Plan, context: ExecutionContext) -> str:
		self.plans.append(plan)
		self.contexts.append(context)
		return self.result
