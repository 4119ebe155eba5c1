"""
Result optimizer - fits a plan's JSON result into a token budget.

The reduction is deliberately greedy and order preserving: after an optional
typed projection and single-property unwrap, properties (or array elements)
are taken in declaration order until the first one that does not fit. Items
are never reordered or skipped to pack the budget more tightly, so the same
input and budget always yield the same output.
"""

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Optional

from .plans.models import PlanType
from .shapes import ResponseShapeRegistry, project
from .tokens import TokenCounter, count_tokens

logger = logging.getLogger(__name__)

_LINE_BREAKS = re.compile(r"[\n\r]")

JSON_CONTENT_TYPE = "application/json"


def try_extract_json(response: str) -> Optional[str]:
	"""
	Extract the JSON payload from a structured tool response.

	A structured response is a JSON object with a ``contentType`` starting
	with ``application/json`` and a non-empty ``content``. Returns None for
	anything else; never raises.
	"""
	try:
		data = json.loads(response)
	except (json.JSONDecodeError, TypeError):
		logger.debug("Unable to extract JSON from plan result, it is likely not a structured tool response.")
		return None

	if not isinstance(data, dict):
		logger.debug("Unable to extract JSON from plan result, it is not a JSON object.")
		return None

	content_type = data.get("contentType")
	if not isinstance(content_type, str) or not content_type.lower().startswith(JSON_CONTENT_TYPE):
		return None

	content = data.get("content")
	if content is None:
		return None
	if not isinstance(content, str):
		content = json.dumps(content, ensure_ascii=False)
	return content if content.strip() else None


@dataclass(frozen=True)
class Provenance:
	"""Where an optimized result came from."""
	last_capability: str
	last_function: str
	plan_kind: PlanType = PlanType.ACTION

	@property
	def source_name(self) -> str:
		return "plan" if self.plan_kind == PlanType.SEQUENTIAL else self.last_capability


def fallback_message(provenance: Provenance) -> str:
	return f"JSON response from {provenance.source_name} is too large to be consumed at this time."


def _render(value: Any) -> str:
	return json.dumps(value, ensure_ascii=False)


def _render_property(name: str, value: Any) -> str:
	return f"{_render(name)}: {_render(value)}"


class ResultOptimizer:
	"""
	Budget-aware reduction of JSON plan results.

	Usage:
		optimizer = ResultOptimizer(shapes=default_shape_registry())
		text = optimizer.optimize(json_text, 500, Provenance("GitHubPlugin", "ListPulls"))
	"""

	def __init__(
		self,
		shapes: Optional[ResponseShapeRegistry] = None,
		token_counter: TokenCounter = count_tokens,
	):
		self.shapes = shapes or ResponseShapeRegistry()
		self.count_tokens = token_counter

	def optimize(self, json_text: str, token_limit: int, provenance: Provenance) -> str:
		token_limit = max(0, token_limit)
		json_text = _LINE_BREAKS.sub("", json_text.strip())

		try:
			document = json.loads(json_text)
		except json.JSONDecodeError:
			logger.debug("Plan result content is not valid JSON, treating it as a scalar")
			document = json_text
		else:
			shape = self.shapes.resolve(provenance.last_capability, provenance.last_function)
			if shape is not None:
				json_text = project(json_text, shape)
				document = json.loads(json_text)

		if self.count_tokens(json_text) < token_limit:
			return json_text

		# A lone property usually wraps the real answer, e.g. {"results": [...]}
		results_descriptor = ""
		if isinstance(document, dict) and len(document) == 1:
			name, document = next(iter(document.items()))
			token_limit = max(0, token_limit - self.count_tokens(name))
			results_descriptor = f"{name}: "

		items = self._accumulate(document, token_limit)
		if not items:
			logger.info(f"Result from {provenance.source_name} exceeds {token_limit} tokens, using fallback")
			return fallback_message(provenance)

		return results_descriptor + json.dumps(items, ensure_ascii=False, separators=(",", ":"))

	def _accumulate(self, document: Any, token_limit: int) -> list[Any]:
		"""Take items in order until the first one that does not fit."""
		if isinstance(document, dict):
			candidates = [
				({name: value}, _render_property(name, value))
				for name, value in document.items()
			]
		elif isinstance(document, list):
			candidates = [(item, _render(item)) for item in document]
		else:
			return []

		items = []
		for item, text in candidates:
			cost = self.count_tokens(text)
			if token_limit - cost <= 0:
				break
			items.append(item)
			token_limit -= cost
		return items
