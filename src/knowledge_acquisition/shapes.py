"""
Response shapes - typed projections of capability responses.

Some integrations answer with large JSON documents of which only a few fields
are useful in a chat prompt. A shape is a pydantic model listing those
fields; projecting a response onto it drops everything else before the
result optimizer measures it. Shapes are resolved by capability name
(optionally narrowed to a function), so new integrations register a model
instead of changing the optimizer.
"""

import json
import logging
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

logger = logging.getLogger(__name__)


class ResponseShape(BaseModel):
	"""Base class for projection models; unknown fields are discarded."""
	model_config = ConfigDict(extra="ignore", populate_by_name=True)


# -- GitHub --

class GitHubUser(ResponseShape):
	login: str = ""


class GitHubLabel(ResponseShape):
	name: str = ""


class PullRequest(ResponseShape):
	url: str = Field(default="", alias="html_url")
	number: int = 0
	state: str = ""
	title: str = ""
	user: Optional[GitHubUser] = None
	labels: list[GitHubLabel] = Field(default_factory=list)
	created_at: Optional[str] = None
	closed_at: Optional[str] = None
	merged_at: Optional[str] = None


# -- Jira --

class JiraNamed(ResponseShape):
	name: str = ""


class IssueFields(ResponseShape):
	summary: str = ""
	description: Optional[Any] = None
	status: Optional[JiraNamed] = None
	priority: Optional[JiraNamed] = None
	issuetype: Optional[JiraNamed] = None
	created: Optional[str] = None
	updated: Optional[str] = None


class IssueResponse(ResponseShape):
	id: str = ""
	key: str = ""
	fields: Optional[IssueFields] = None


class ResponseShapeRegistry:
	"""
	Maps capability names (and optionally function names) to shapes.

	Usage:
		shapes = ResponseShapeRegistry()
		shapes.register("GitHubPlugin", PullRequest)
		shapes.register("JiraPlugin", IssueResponse, function="GetIssue")

		shape = shapes.resolve("GitHubPlugin", "ListPulls")  # PullRequest
	"""

	def __init__(self):
		self._shapes: dict[tuple[str, Optional[str]], type[BaseModel]] = {}

	def register(self, capability: str, shape: type[BaseModel], function: Optional[str] = None) -> None:
		self._shapes[(capability, function)] = shape

	def resolve(self, capability: str, function: Optional[str] = None) -> Optional[type[BaseModel]]:
		"""Find the shape for a function, falling back to the capability-wide one."""
		if function is not None and (capability, function) in self._shapes:
			return self._shapes[(capability, function)]
		return self._shapes.get((capability, None))


def project(json_text: str, shape: type[BaseModel]) -> str:
	"""
	Re-decode JSON against a shape and re-encode only the shape's fields.

	Objects are validated against the shape, arrays against a list of it.
	Anything else, or a document that does not fit the shape, is returned
	unchanged.
	"""
	data = json.loads(json_text)
	if isinstance(data, list):
		adapter = TypeAdapter(list[shape])
	elif isinstance(data, dict):
		adapter = TypeAdapter(shape)
	else:
		return json_text

	try:
		projected = adapter.validate_python(data)
	except ValidationError as e:
		logger.warning(f"Response does not match shape {shape.__name__}, leaving it unprojected: {e}")
		return json_text
	return adapter.dump_json(projected).decode()


def default_shape_registry() -> ResponseShapeRegistry:
	"""Shapes for the integrations shipped with the chat host."""
	shapes = ResponseShapeRegistry()
	shapes.register("GitHubPlugin", PullRequest)
	shapes.register("JiraPlugin", IssueResponse)
	shapes.register("JiraPlugin", IssueResponse, function="GetIssue")
	return shapes
