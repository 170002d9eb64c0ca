"""mdflow command line.

Commands:
    mdflow imports resolve <workflow> [--json] [--base-dir DIR]  - Resolve and merge imports
    mdflow imports expand <workflow> [--base-dir DIR]            - Expand include directives
    mdflow frontmatter set <workflow> <key> <value>              - Set a frontmatter key

<workflow> is a file path, or a name looked up under WORKFLOWS_DIR
(e.g. `triage` for .github/workflows/triage.md).
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

import click
import yaml
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from mdflow.config import get_config_or_default, validate_config
from mdflow.console import CompilerError, ErrorPosition, print_error, source_context

console = Console()


def _configure_logging(verbose: bool) -> None:
    config = get_config_or_default()
    for issue in validate_config(config):
        console.print(f"[yellow]Warning: {issue}[/yellow]")

    level = logging.DEBUG if verbose else config.log_level
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


def _find_workflow(name_or_path: str) -> Path:
    """Resolve a workflow argument given as a path or as a name under WORKFLOWS_DIR."""
    path = Path(name_or_path)
    if path.is_file():
        return path

    workflows_dir = get_config_or_default().get_absolute_workflows_path()
    for candidate in (workflows_dir / name_or_path, workflows_dir / f"{name_or_path}.md"):
        if candidate.is_file():
            return candidate

    console.print(f"[red]Error:[/red] Workflow not found: {name_or_path}")
    raise SystemExit(1)


def _base_dir_for(workflow_path: Path, base_dir: Optional[Path]) -> Path:
    return base_dir if base_dir is not None else workflow_path.parent


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def main(verbose: bool):
    """Resolve imports and edit markdown workflow documents."""
    _configure_logging(verbose)


@main.group(name="imports")
def imports_group():
    """Resolve and expand workflow imports."""


@imports_group.command(name="resolve")
@click.argument("workflow")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.option(
    "--base-dir",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Directory local imports resolve against (default: the workflow's directory)",
)
def resolve_cmd(workflow: str, as_json: bool, base_dir: Optional[Path]):
    """Resolve a workflow's imports and show the merged result.

    Examples:
        mdflow imports resolve .github/workflows/triage.md
        mdflow imports resolve .github/workflows/triage.md --json
    """
    from mdflow.parser import (
        FormattedImportError,
        FrontmatterParseError,
        extract_frontmatter_from_content,
        process_imports_from_frontmatter_with_source,
    )

    workflow_path = _find_workflow(workflow)

    content = workflow_path.read_text()
    try:
        document = extract_frontmatter_from_content(content)
        result = process_imports_from_frontmatter_with_source(
            document.frontmatter,
            _base_dir_for(workflow_path, base_dir),
            None,
            str(workflow_path),
            content,
        )
    except FrontmatterParseError as e:
        context, start = source_context(content, e.line)
        print_error(
            CompilerError(
                position=ErrorPosition(str(workflow_path), e.line, e.column),
                type="error",
                message=e.message,
                context=context,
                context_start=start,
            ),
            console,
        )
        raise SystemExit(1)
    except FormattedImportError as e:
        console.print(e.formatted, markup=False, highlight=False, soft_wrap=True)
        raise SystemExit(1)

    if as_json:
        print(json.dumps(result.to_dict(), indent=2, default=str))
        return

    if not result.imported_files:
        console.print("[dim]No imports.[/dim]")
        return

    table = Table(title=f"Imports of {workflow_path.name}")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Import", style="cyan")
    table.add_column("Inputs")
    for index, identity in enumerate(result.imported_files, start=1):
        inputs = result.import_inputs.get(identity)
        table.add_row(str(index), identity, json.dumps(inputs) if inputs else "")
    console.print(table)

    for label, values in (
        ("Tools", result.merged_tools),
        ("MCP servers", result.merged_mcp_servers),
        ("Services", result.merged_services),
        ("Permissions", result.merged_permissions),
        ("Jobs", result.merged_jobs),
    ):
        if values:
            console.print(f"[bold]{label}:[/bold] {', '.join(sorted(values))}")

    if result.merged_engine is not None:
        console.print(f"[bold]Engine:[/bold] {result.merged_engine}")
    if result.merged_steps:
        console.print(f"[bold]Steps:[/bold] {len(result.merged_steps)}")
    if result.copilot_setup_steps:
        console.print("[bold]Setup steps:[/bold]")
        console.print(result.copilot_setup_steps, markup=False, highlight=False, soft_wrap=True)


@imports_group.command(name="expand")
@click.argument("workflow")
@click.option(
    "--base-dir",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Directory include paths resolve against (default: the workflow's directory)",
)
def expand_cmd(workflow: str, base_dir: Optional[Path]):
    """Print the workflow body with include directives expanded."""
    from mdflow.parser import WorkflowParseError, extract_frontmatter_from_file, process_includes

    workflow_path = _find_workflow(workflow)

    try:
        document = extract_frontmatter_from_file(workflow_path)
        expanded = process_includes(document.markdown, _base_dir_for(workflow_path, base_dir))
    except WorkflowParseError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise SystemExit(1)

    click.echo(expanded, nl=False)


@main.group(name="frontmatter")
def frontmatter_group():
    """Edit workflow frontmatter."""


@frontmatter_group.command(name="set")
@click.argument("workflow")
@click.argument("key")
@click.argument("value")
def set_cmd(workflow: str, key: str, value: str):
    """Set a top-level frontmatter KEY to VALUE (parsed as YAML).

    Examples:
        mdflow frontmatter set workflow.md engine copilot
        mdflow frontmatter set workflow.md timeout-minutes 20
        mdflow frontmatter set workflow.md tools '{github: {toolsets: [default]}}'
    """
    from mdflow.parser import WorkflowParseError, update_workflow_frontmatter

    workflow_path = _find_workflow(workflow)

    try:
        parsed = yaml.safe_load(value)
    except yaml.YAMLError as e:
        raise click.BadParameter(f"Value is not valid YAML: {e}", param_hint="VALUE")

    try:
        update_workflow_frontmatter(workflow_path, lambda fm: fm.__setitem__(key, parsed))
    except WorkflowParseError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise SystemExit(1)

    console.print(f"[green]✓[/green] Updated {key} in {workflow_path}")


if __name__ == "__main__":
    main()
