"""
mdflow workflow parser.

This module provides the import resolution and merge engine:
- extract_frontmatter_from_content(): Split a document into frontmatter + markdown
- parse_import_directive(): Recognize @include / {{#import ...}} directives
- process_imports_from_frontmatter(): Resolve, order and merge ``imports:``
- format_import_error(): Render an import failure with source location
- extract_yaml_error(): Recover line/column from YAML parser errors
- process_includes(): Expand include directives in markdown prose
- update_workflow_frontmatter(): Rewrite a workflow's frontmatter in place

Example:
    from mdflow.parser import (
        extract_frontmatter_from_content,
        process_imports_from_frontmatter_with_source,
    )

    content = Path("workflows/triage.md").read_text()
    document = extract_frontmatter_from_content(content)
    result = process_imports_from_frontmatter_with_source(
        document.frontmatter, "workflows", None, "workflows/triage.md", content
    )
    print(result.imported_files)
"""

from .copilot_setup import (
    extract_steps_from_copilot_setup,
    is_copilot_setup_steps_file,
    process_yaml_workflow_import,
)
from .errors import (
    CircularImportError,
    CopilotSetupError,
    FrontmatterParseError,
    ImportFileNotFoundError,
    ImportSpecError,
    InvalidWorkflowSpecError,
    RemoteFetchError,
    SectionNotFoundError,
    ShapeError,
    WorkflowParseError,
)
from .frontmatter import (
    FrontmatterResult,
    extract_frontmatter_from_content,
    extract_frontmatter_from_file,
)
from .graph import topological_order
from .import_directive import ImportDirectiveMatch, parse_import_directive
from .import_error import (
    FormattedImportError,
    WorkflowImportError,
    format_import_error,
)
from .imports import (
    ImportNode,
    ImportResolver,
    ImportSpec,
    ImportsResult,
    normalize_imports,
    process_imports_from_frontmatter,
    process_imports_from_frontmatter_with_source,
)
from .includes import process_includes
from .manifest import ImportManifest
from .remote import WorkflowSpec, is_workflow_spec, parse_workflow_spec
from .sections import extract_markdown_section
from .workflow_update import (
    ensure_tools_section,
    quote_cron_expressions,
    update_workflow_frontmatter,
)
from .yaml_error import extract_yaml_error

__all__ = [
    # Errors
    "CircularImportError",
    "CopilotSetupError",
    "FormattedImportError",
    "FrontmatterParseError",
    "ImportFileNotFoundError",
    "ImportSpecError",
    "InvalidWorkflowSpecError",
    "RemoteFetchError",
    "SectionNotFoundError",
    "ShapeError",
    "WorkflowImportError",
    "WorkflowParseError",
    # Frontmatter
    "FrontmatterResult",
    "extract_frontmatter_from_content",
    "extract_frontmatter_from_file",
    "extract_yaml_error",
    # Directives and includes
    "ImportDirectiveMatch",
    "parse_import_directive",
    "process_includes",
    "extract_markdown_section",
    # Import resolution
    "ImportManifest",
    "ImportNode",
    "ImportResolver",
    "ImportSpec",
    "ImportsResult",
    "WorkflowSpec",
    "format_import_error",
    "is_workflow_spec",
    "normalize_imports",
    "parse_workflow_spec",
    "process_imports_from_frontmatter",
    "process_imports_from_frontmatter_with_source",
    "topological_order",
    # Setup steps / YAML workflow imports
    "extract_steps_from_copilot_setup",
    "is_copilot_setup_steps_file",
    "process_yaml_workflow_import",
    # Rewriting
    "ensure_tools_section",
    "quote_cron_expressions",
    "update_workflow_frontmatter",
]
