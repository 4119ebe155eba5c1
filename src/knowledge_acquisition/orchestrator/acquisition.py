"""
External information acquisition - propose, approve, execute.

Each chat turn calls ``acquire_external_information``. Without an approved
plan in the request context the acquirer asks the planner for a new plan,
merges the request's variables into its parameters and leaves it in
``proposed_plan`` for the host to show the user. When the context carries an
approved plan, the acquirer executes it in a fresh execution context and
returns the condensed result wrapped in the related-information block.
"""

import logging
from typing import Optional

from pydantic import ValidationError

from ..context import ExecutionContext, RequestContext
from ..optimizer import Provenance, ResultOptimizer, try_extract_json
from ..plans.models import (
	INPUT_PARAMETER,
	Plan,
	PlannerOptions,
	PlanState,
	PlanType,
	ProposedPlan,
)
from ..shapes import default_shape_registry
from ..tokens import TokenCounter, count_tokens
from .executor import PlanExecutor, SequentialPlanExecutor
from .planner import PlannerClient
from .retry import (
	PlanningError,
	PlanningErrorCode,
	RetryBudget,
	classify_error,
	decide_retry,
	total_retries,
)

logger = logging.getLogger(__name__)

PROMPT_PREAMBLE = "[RELATED START]"
PROMPT_POSTAMBLE = "[RELATED END]"
RESULT_HEADER = "RESULT: "

USER_INTENT_VARIABLE = "userIntent"

PLAN_GOAL_TEMPLATE = (
	"Given the following context, accomplish the user intent.\n"
	"Context:\n{context}\n"
	"User Intent:{user_intent}"
)


def merge_context_into_parameters(variables: dict[str, str], parameters: dict[str, str]) -> None:
	"""
	Overwrite declared plan parameters with same-named context variables.

	Context variables come from user input, so they win. Parameters the plan
	does not declare are never added, and the input parameter is left alone.
	Names match case-insensitively; the last same-named variable wins.
	"""
	by_name = {name.lower(): value for name, value in variables.items()}
	for name in list(parameters):
		key = name.lower()
		if key == INPUT_PARAMETER:
			continue
		if key in by_name:
			parameters[name] = by_name[key]


def merge_context_into_plan(variables: dict[str, str], plan: Plan, plan_type: PlanType) -> None:
	if plan_type == PlanType.ACTION:
		merge_context_into_parameters(variables, plan.parameters)
	else:
		for step in plan.steps:
			merge_context_into_parameters(variables, step.parameters)


class ExternalInformationAcquirer:
	"""
	Acquires external information for a chat turn through planned tool use.

	``proposed_plan`` is reset on every call and only holds a proposal made
	by the most recent one.

	Usage:
		acquirer = ExternalInformationAcquirer(planner, options=PlannerOptions())
		text = await acquirer.acquire_external_information(intent, context, token_limit=1024)
		if acquirer.proposed_plan:
			context.proposed_plan_json = acquirer.proposed_plan.to_json()  # ask the user
	"""

	def __init__(
		self,
		planner: PlannerClient,
		executor: Optional[PlanExecutor] = None,
		optimizer: Optional[ResultOptimizer] = None,
		options: Optional[PlannerOptions] = None,
		token_counter: TokenCounter = count_tokens,
	):
		self.planner = planner
		self.executor = executor or SequentialPlanExecutor()
		self.optimizer = optimizer or ResultOptimizer(
			shapes=default_shape_registry(),
			token_counter=token_counter,
		)
		self.options = options or PlannerOptions()
		self.count_tokens = token_counter
		self.proposed_plan: Optional[ProposedPlan] = None

	async def acquire_external_information(
		self,
		user_intent: str,
		context: RequestContext,
		token_limit: int,
		options: Optional[PlannerOptions] = None,
	) -> str:
		"""
		Execute an approved plan or propose a new one.

		Returns:
			The related-information block for an executed plan, or an empty
			string when there are no capabilities or a plan was only proposed.
		"""
		self.proposed_plan = None
		if not context.registry.has_any_capabilities():
			return ""

		proposal = self._load_proposed_plan(context)
		if proposal is not None and proposal.state == PlanState.APPROVED:
			return await self._execute_approved_plan(proposal, context, token_limit)

		await self._propose_plan(user_intent, context, options or self.options)
		return ""

	def _load_proposed_plan(self, context: RequestContext) -> Optional[ProposedPlan]:
		proposed_plan_json = context.proposed_plan_json
		if not proposed_plan_json or not proposed_plan_json.strip():
			return None
		try:
			return ProposedPlan.from_json(proposed_plan_json)
		except ValidationError as e:
			logger.debug(f"Ignoring unreadable proposed plan in context: {e}")
			return None

	async def _execute_approved_plan(
		self,
		proposal: ProposedPlan,
		context: RequestContext,
		token_limit: int,
	) -> str:
		plan = proposal.plan.model_copy(deep=True)
		execution_context = ExecutionContext(registry=context.registry)

		logger.info(f"Executing approved plan: {', '.join(plan.function_names())}")
		result = await self.executor.invoke(plan, execution_context)
		functions_used = f"FUNCTIONS EXECUTED: {'; '.join(plan.function_names())}."

		budget = max(
			0,
			token_limit
			- self.count_tokens(PROMPT_PREAMBLE)
			- self.count_tokens(PROMPT_POSTAMBLE)
			- self.count_tokens(functions_used)
			- self.count_tokens(RESULT_HEADER),
		)

		json_content = try_extract_json(result)
		if json_content is not None and plan.last_step is not None:
			provenance = Provenance(
				last_capability=plan.last_step.skill_name,
				last_function=plan.last_step.name,
				plan_kind=proposal.type,
			)
			result = self.optimizer.optimize(json_content, budget, provenance)

		return f"{PROMPT_PREAMBLE}\n{functions_used}\n{RESULT_HEADER}{result.strip()}\n{PROMPT_POSTAMBLE}\n"

	async def _propose_plan(self, user_intent: str, context: RequestContext, options: PlannerOptions) -> None:
		context_string = "\n".join(
			f"{name}: {value}" for name, value in context.items()
			if name != USER_INTENT_VARIABLE
		)
		goal = PLAN_GOAL_TEMPLATE.format(context=context_string, user_intent=user_intent)

		budget = RetryBudget.from_options(options)
		logger.debug(f"Creating plan with {total_retries(options)} retries available")

		plan: Optional[Plan] = None
		while plan is None:
			try:
				plan = await self.planner.create_plan(goal)
				if plan is None:
					raise PlanningError(PlanningErrorCode.INVALID_PLAN, "Planner returned no plan")
			except Exception as e:
				retry, budget = decide_retry(classify_error(e), budget)
				if not retry:
					raise
				logger.warning(f"Retrying plan creation on error: {e}")

		if not plan.steps:
			logger.info("Planner returned a plan without steps, nothing to propose")
			return

		merge_context_into_plan(dict(context.items()), plan, options.type)
		self.proposed_plan = ProposedPlan(plan=plan, type=options.type, state=PlanState.NO_OP)
		logger.info(f"Proposed plan with {len(plan.steps)} step(s) for approval")
