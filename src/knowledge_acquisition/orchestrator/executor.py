"""Plan executor - runs plan steps against the capability registry."""

import logging
from typing import Protocol

from ..context import ExecutionContext
from ..plans.models import INPUT_PARAMETER, Plan, PlanStep
from .retry import MissingFunctionError

logger = logging.getLogger(__name__)


class PlanExecutor(Protocol):
	"""Anything able to run a plan and return its final result text."""

	async def invoke(self, plan: Plan, context: ExecutionContext) -> str:
		...


class SequentialPlanExecutor:
	"""
	Executes steps in order, piping each step's output into the next.

	Step arguments are the plan's top-level parameters overlaid with the
	step's own parameters. Values written as ``$name`` are read from the
	execution variables, and ``input`` defaults to the previous output.
	"""

	async def invoke(self, plan: Plan, context: ExecutionContext) -> str:
		for name, value in plan.parameters.items():
			context.variables.setdefault(name, value)

		for index, step in enumerate(plan.steps, start=1):
			output = await self._invoke_step(step, plan, context)
			context.input = output
			for name in step.outputs:
				context.variables[name] = output
			logger.debug(f"Step {index}/{len(plan.steps)} {step.qualified_name} completed")

		return context.result

	async def _invoke_step(self, step: PlanStep, plan: Plan, context: ExecutionContext) -> str:
		fn = context.registry.get_function(step.skill_name, step.name)
		if fn is None:
			raise MissingFunctionError(step.skill_name, step.name)

		arguments = self._resolve_arguments({**plan.parameters, **step.parameters}, context)
		arguments.setdefault(INPUT_PARAMETER, context.input)
		kwargs = {k: v for k, v in arguments.items() if k in fn.parameters}

		if fn.is_async:
			result = await fn.func(**kwargs)
		else:
			result = fn.func(**kwargs)
		return "" if result is None else str(result)

	def _resolve_arguments(self, parameters: dict[str, str], context: ExecutionContext) -> dict[str, str]:
		resolved = {}
		for name, value in parameters.items():
			if value.startswith("$") and len(value) > 1:
				value = context.variables.get(value[1:], "")
			resolved[name] = value
		return resolved
