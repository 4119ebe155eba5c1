"""
Capability Registry - read-only view of the tools a host exposes.

Capabilities group named functions (for example ``GitHubPlugin.ListPulls``).
The planner enumerates them to build its prompt and the executor resolves
plan steps against them.
"""

import inspect
from dataclasses import dataclass, field
from typing import Any, Callable, Optional


@dataclass
class CapabilityFunction:
	"""A callable function exposed by a capability."""
	name: str
	func: Callable[..., Any]
	description: str = ""
	parameters: list[str] = field(default_factory=list)

	def __post_init__(self) -> None:
		if not self.parameters:
			self.parameters = [
				p.name for p in inspect.signature(self.func).parameters.values()
				if p.kind not in (p.VAR_POSITIONAL, p.VAR_KEYWORD)
			]

	@property
	def is_async(self) -> bool:
		return inspect.iscoroutinefunction(self.func)


@dataclass
class Capability:
	"""A registered tool integration identified by name."""
	name: str
	functions: dict[str, CapabilityFunction] = field(default_factory=dict)
	description: str = ""

	def add_function(
		self,
		func: Callable[..., Any],
		name: Optional[str] = None,
		description: str = "",
	) -> CapabilityFunction:
		fn = CapabilityFunction(
			name=name or func.__name__,
			func=func,
			description=description or (inspect.getdoc(func) or "").split("\n")[0],
		)
		self.functions[fn.name] = fn
		return fn


class CapabilityRegistry:
	"""
	Registry of capabilities, keyed by name.

	Usage:
		registry = CapabilityRegistry()
		github = registry.add("GitHubPlugin")
		github.add_function(list_pulls, name="ListPulls")

		registry.has_any_capabilities()  # True
		registry.get_function("GitHubPlugin", "ListPulls")
	"""

	def __init__(self, capabilities: Optional[list[Capability]] = None):
		self._capabilities: dict[str, Capability] = {}
		for capability in capabilities or []:
			self._capabilities[capability.name] = capability

	def add(self, name: str, description: str = "") -> Capability:
		"""Register a new capability, or return the existing one."""
		capability = self._capabilities.get(name)
		if capability is None:
			capability = Capability(name=name, description=description)
			self._capabilities[name] = capability
		return capability

	def has_any_capabilities(self) -> bool:
		"""True when at least one capability exposes a callable function."""
		return any(c.functions for c in self._capabilities.values())

	def get_function(self, capability: str, function: str) -> Optional[CapabilityFunction]:
		entry = self._capabilities.get(capability)
		if entry is None:
			return None
		return entry.functions.get(function)

	def has_function(self, capability: str, function: str) -> bool:
		return self.get_function(capability, function) is not None

	def describe(self) -> str:
		"""Render every function as a manual for the planner prompt."""
		lines = []
		for capability in self._capabilities.values():
			for fn in capability.functions.values():
				line = f"{capability.name}.{fn.name}"
				if fn.description:
					line += f": {fn.description}"
				lines.append(line)
				if fn.parameters:
					lines.append(f"  parameters: {', '.join(fn.parameters)}")
		return "\n".join(lines)
