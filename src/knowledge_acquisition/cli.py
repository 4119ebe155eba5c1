"""CLI for knowledge-acquisition: config, count-tokens, optimize, and plan commands."""

import argparse
import sys
from pathlib import Path
from typing import Optional

from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.tree import Tree

from .config import load_config
from .logging_config import setup_logging
from .optimizer import Provenance, ResultOptimizer
from .plans.models import PlanState, PlanType, ProposedPlan
from .shapes import default_shape_registry
from .tokens import make_counter

STATE_ICONS = {
	PlanState.NO_OP: "[yellow]\\[?][/yellow]",
	PlanState.APPROVED: "[green]\\[x][/green]",
}


def _read_input(path: Optional[str]) -> str:
	"""Read a file, or stdin when the path is omitted or '-'."""
	if not path or path == "-":
		return sys.stdin.read()
	return Path(path).read_text()


def _load_proposal(path: str) -> ProposedPlan:
	try:
		return ProposedPlan.from_json(_read_input(path))
	except ValidationError as e:
		print(f"Error: not a proposed plan: {e}", file=sys.stderr)
		sys.exit(1)


def cmd_config(args: argparse.Namespace) -> None:
	"""Show the resolved configuration."""
	config = load_config()
	print("knowledge-acquisition config")
	print(f"{'=' * 40}")

	if args.check:
		checks = [
			("Config dir", config.config_dir, config.config_dir.exists()),
			("Data dir", config.data_dir, config.data_dir.exists()),
			("Config file", config.config_file, config.config_file.exists()),
			("Log dir", config.log_dir, config.log_dir.exists()),
		]
		for label, path, exists in checks:
			status = "OK" if exists else "MISSING"
			print(f"  [{status:7s}] {label}: {path}")
		return

	print(f"  Config dir:     {config.config_dir}")
	print(f"  Data dir:       {config.data_dir}")
	print(f"  Token limit:    {config.token_limit}")
	print(f"  Token encoding: {config.token_encoding}")
	print(f"  Log level:      {config.log_level}")
	print(f"  Planner:        {config.planner.model_dump_json(by_alias=True)}")


def cmd_count_tokens(args: argparse.Namespace) -> None:
	"""Print the token cost of a file or stdin."""
	config = load_config()
	counter = make_counter(args.encoding or config.token_encoding)
	print(counter(_read_input(args.file)))


def cmd_optimize(args: argparse.Namespace) -> None:
	"""Fit a JSON document into a token budget."""
	config = load_config()
	optimizer = ResultOptimizer(
		shapes=default_shape_registry(),
		token_counter=make_counter(config.token_encoding),
	)
	provenance = Provenance(
		last_capability=args.capability,
		last_function=args.function,
		plan_kind=PlanType(args.plan_type) if args.plan_type else config.planner.type,
	)
	limit = args.limit if args.limit is not None else config.token_limit
	print(optimizer.optimize(_read_input(args.file), limit, provenance))


def render_proposed_plan(proposal: ProposedPlan, console: Optional[Console] = None) -> None:
	"""Render a proposed plan as a Rich Tree with its steps and parameters."""
	console = console or Console()
	plan = proposal.plan
	icon = STATE_ICONS.get(proposal.state, "[ ]")

	tree = Tree(f"{icon} [bold]{plan.description or 'Plan'}[/bold]  [dim]({proposal.type.value})[/dim]")
	if plan.parameters:
		params = tree.add("[bold]Parameters[/bold]")
		for name, value in plan.parameters.items():
			params.add(f"{name} = {value}")

	for index, step in enumerate(plan.steps, start=1):
		branch = tree.add(f"{index}. [bold]{step.qualified_name}[/bold]")
		for name, value in step.parameters.items():
			branch.add(f"[dim]{name}[/dim] = {value}")

	console.print(Panel(tree, title=f"State: {proposal.state.value}", border_style="cyan"))


def cmd_plan_show(args: argparse.Namespace) -> None:
	"""Render a serialized proposed plan."""
	render_proposed_plan(_load_proposal(args.file))


def cmd_plan_approve(args: argparse.Namespace) -> None:
	"""Mark a serialized proposed plan as approved."""
	proposal = _load_proposal(args.file).approve()
	output = args.output or (args.file if args.file and args.file != "-" else None)
	if output:
		Path(output).write_text(proposal.to_json())
		print(f"Approved plan written to {output}", file=sys.stderr)
	else:
		print(proposal.to_json())


def main(argv: Optional[list[str]] = None) -> None:
	"""CLI entry point."""
	parser = argparse.ArgumentParser(
		prog="knowledge-acquisition",
		description="Plan, approve and condense external information for chat",
	)
	parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
	subparsers = parser.add_subparsers(dest="command")

	# config
	config_parser = subparsers.add_parser("config", help="Show resolved configuration")
	config_parser.add_argument("--check", action="store_true", help="Check configured paths")
	config_parser.set_defaults(func=cmd_config)

	# count-tokens
	count_parser = subparsers.add_parser("count-tokens", help="Count tokens in a file or stdin")
	count_parser.add_argument("file", nargs="?", default=None)
	count_parser.add_argument("--encoding", type=str, default=None, help="tiktoken encoding name")
	count_parser.set_defaults(func=cmd_count_tokens)

	# optimize
	optimize_parser = subparsers.add_parser("optimize", help="Fit a JSON result into a token budget")
	optimize_parser.add_argument("file", nargs="?", default=None)
	optimize_parser.add_argument("--limit", type=int, default=None, help="Token limit (default: config)")
	optimize_parser.add_argument("--capability", type=str, default="", help="Capability that produced the result")
	optimize_parser.add_argument("--function", type=str, default="", help="Function that produced the result")
	optimize_parser.add_argument(
		"--plan-type",
		choices=[t.value for t in PlanType],
		default=None,
		help="Plan type that produced the result (default: config planner type)",
	)
	optimize_parser.set_defaults(func=cmd_optimize)

	# plan
	plan_parser = subparsers.add_parser("plan", help="Inspect or approve a proposed plan")
	plan_subparsers = plan_parser.add_subparsers(dest="plan_command")

	plan_show = plan_subparsers.add_parser("show", help="Render a proposed plan")
	plan_show.add_argument("file", nargs="?", default=None)
	plan_show.set_defaults(func=cmd_plan_show)

	plan_approve = plan_subparsers.add_parser("approve", help="Approve a proposed plan")
	plan_approve.add_argument("file", nargs="?", default=None)
	plan_approve.add_argument("--output", "-o", type=str, default=None, help="Write to this file instead")
	plan_approve.set_defaults(func=cmd_plan_approve)

	args = parser.parse_args(argv)

	if not hasattr(args, "func"):
		parser.print_help()
		sys.exit(1)

	config = load_config()
	setup_logging("DEBUG" if args.verbose else config.log_level, config.log_dir)
	args.func(args)


if __name__ == "__main__":
	main()
