"""
Planner - turns a natural-language goal into an executable Plan.

The planner asks a language model for a JSON plan over the functions in the
capability registry and validates the answer. Malformed answers raise an
invalid-plan PlanningError; references to unregistered functions raise
MissingFunctionError. Both are retried by the acquisition engine.
"""

import asyncio
import json
import logging
import re
from typing import Awaitable, Callable, Optional, Protocol

from pydantic import ValidationError

from ..capabilities import CapabilityRegistry
from ..plans.models import INPUT_PARAMETER, Plan, PlannerOptions, PlanType
from .retry import MissingFunctionError, PlanningError, PlanningErrorCode

logger = logging.getLogger(__name__)

Completion = Callable[[str], Awaitable[str]]


class PlannerClient(Protocol):
	"""Anything able to create a plan for a goal."""

	async def create_plan(self, goal: str) -> Plan:
		...


async def claude_cli_completion(prompt: str, timeout: float = 120) -> str:
	"""Complete a prompt through the Claude CLI in print mode."""
	try:
		process = await asyncio.create_subprocess_exec(
			"claude",
			"--print",
			"--output-format", "text",
			stdin=asyncio.subprocess.PIPE,
			stdout=asyncio.subprocess.PIPE,
			stderr=asyncio.subprocess.PIPE,
		)
		stdout, stderr = await asyncio.wait_for(
			process.communicate(input=prompt.encode()),
			timeout=timeout,
		)
	except asyncio.TimeoutError as e:
		raise PlanningError(PlanningErrorCode.CREATE_PLAN_ERROR, "Claude CLI timed out") from e
	except FileNotFoundError as e:
		raise PlanningError(PlanningErrorCode.CREATE_PLAN_ERROR, "Claude CLI not found") from e

	if process.returncode != 0:
		raise PlanningError(
			PlanningErrorCode.CREATE_PLAN_ERROR,
			f"Claude CLI error: {stderr.decode().strip()}",
		)
	return stdout.decode()


class LLMPlanner:
	"""
	Creates plans by prompting a language model.

	Usage:
		planner = LLMPlanner(registry, complete=claude_cli_completion)
		plan = await planner.create_plan("List open pull requests for repo X")
	"""

	def __init__(
		self,
		registry: CapabilityRegistry,
		complete: Completion,
		options: Optional[PlannerOptions] = None,
	):
		self.registry = registry
		self.complete = complete
		self.options = options or PlannerOptions()

	async def create_plan(self, goal: str) -> Plan:
		if not goal.strip():
			raise PlanningError(PlanningErrorCode.INVALID_GOAL, "The goal specified is empty")

		prompt = self._build_prompt(goal)
		response = await self.complete(prompt)
		plan = self._parse_plan_response(goal, response)
		self._check_functions(plan)

		logger.info(f"Created plan with {len(plan.steps)} step(s): {', '.join(plan.function_names())}")
		return plan

	def _build_prompt(self, goal: str) -> str:
		"""Build the planning prompt listing the available functions."""
		single_step = self.options.type == PlanType.ACTION
		lines = [
			"# Create a Plan",
			"",
			"Create a plan that accomplishes the goal using only the functions below.",
			"Use exactly one step." if single_step else "Use as many steps as needed, in execution order.",
			"",
			"## Available Functions",
			self.registry.describe(),
			"",
			"## Goal",
			goal,
			"",
			"## Output Format",
			"",
			"```json",
			"{",
			'  "steps": [',
			'    {"skill_name": "string", "name": "string", "parameters": {"name": "value"}, "outputs": ["string"]}',
			"  ]",
			"}",
			"```",
			"",
			"Reference earlier outputs as $name. Generate the JSON plan now:",
		]
		return "\n".join(lines)

	def _parse_plan_response(self, goal: str, response: str) -> Plan:
		"""Parse the model's response into a Plan."""
		json_match = re.search(r"```json\s*(.*?)\s*```", response, re.DOTALL)
		if json_match:
			json_str = json_match.group(1)
		else:
			json_match = re.search(r"\{[\s\S]*\"steps\"[\s\S]*\}", response)
			if not json_match:
				raise PlanningError(PlanningErrorCode.INVALID_PLAN, "Could not find a plan in the response")
			json_str = json_match.group(0)

		try:
			data = json.loads(json_str)
		except json.JSONDecodeError as e:
			raise PlanningError(PlanningErrorCode.INVALID_PLAN, f"Failed to parse plan JSON: {e}") from e

		if not isinstance(data, dict) or not isinstance(data.get("steps"), list):
			raise PlanningError(PlanningErrorCode.INVALID_PLAN, "Plan JSON has no steps list")

		data.setdefault("description", goal)
		try:
			plan = Plan.model_validate(data)
		except ValidationError as e:
			raise PlanningError(PlanningErrorCode.INVALID_PLAN, f"Plan JSON is malformed: {e}") from e

		if self.options.type == PlanType.ACTION and len(plan.steps) == 1 and not plan.parameters:
			# Action plans are executed as a unit; their parameters live at the top level
			step = plan.steps[0]
			plan.parameters = {k: v for k, v in step.parameters.items() if k.lower() != INPUT_PARAMETER}
			step.parameters = {k: v for k, v in step.parameters.items() if k.lower() == INPUT_PARAMETER}
		return plan

	def _check_functions(self, plan: Plan) -> None:
		for step in plan.steps:
			if not self.registry.has_function(step.skill_name, step.name):
				raise MissingFunctionError(step.skill_name, step.name)
