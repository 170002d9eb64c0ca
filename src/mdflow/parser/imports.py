"""
Import resolution and merge engine.

Turns a frontmatter's ``imports:`` declarations into an ordered, merged
result:

1. Each declared import is loaded (local file, or remote content through the
   manifest) and its own ``imports:`` are resolved depth-first before it is
   considered done.
2. Cycles are rejected with the exact path that revisits a node; a node
   reached twice (diamond) is loaded and merged once.
3. Resolved identities are ordered dependency-first with alphabetical
   tie-break (see ``graph.topological_order``) and merged in that order.

Example:
    from mdflow.parser.imports import process_imports_from_frontmatter

    result = process_imports_from_frontmatter(
        {"imports": ["shared/tools.md", "{{#import? shared/optional.md}}"]},
        ".github/workflows",
    )
    print(result.imported_files)
    print(result.merged_tools)
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Optional, Union

from mdflow.config import MdflowConfig
from mdflow.parser.copilot_setup import (
    YAMLWorkflowImport,
    is_yaml_workflow_file,
    process_yaml_workflow_import,
)
from mdflow.parser.errors import (
    CircularImportError,
    ImportFileNotFoundError,
    ImportSpecError,
    RemoteFetchError,
    WorkflowParseError,
)
from mdflow.parser.frontmatter import extract_frontmatter_from_content
from mdflow.parser.graph import topological_order
from mdflow.parser.import_directive import parse_import_directive
from mdflow.parser.import_error import (
    FormattedImportError,
    WorkflowImportError,
    find_import_item_location,
    format_import_error,
)
from mdflow.parser.manifest import ImportManifest
from mdflow.parser.remote import Fetcher, WorkflowSpec, is_workflow_spec, parse_workflow_spec
from mdflow.parser.sections import extract_markdown_section, split_section
from mdflow.parser.yaml_value import mapping_or_empty, sequence_or_empty, yaml_kind

logger = logging.getLogger(__name__)

# Frontmatter sections merged as key-level unions (section -> ImportsResult field)
MERGED_MAPPING_SECTIONS: dict[str, str] = {
    "tools": "merged_tools",
    "mcp-servers": "merged_mcp_servers",
    "services": "merged_services",
    "permissions": "merged_permissions",
    "network": "merged_network",
    "runtimes": "merged_runtimes",
    "safe-outputs": "merged_safe_outputs",
    "secret-masking": "merged_secret_masking",
}


@dataclass
class ImportSpec:
    """
    A parsed reference to an importable unit.

    ``path`` is also the identity used for ordering and deduplication; it
    keeps any ``#Section`` suffix.
    """

    path: str
    optional: bool = False
    inputs: dict[str, Any] = field(default_factory=dict)


@dataclass
class ImportNode:
    """A resolved import."""

    identity: str
    spec: ImportSpec
    location: str  # resolved file path or remote spec
    source: str  # raw document text
    frontmatter: dict[str, Any] = field(default_factory=dict)
    markdown: str = ""
    children: list[ImportSpec] = field(default_factory=list)
    yaml_workflow: Optional[YAMLWorkflowImport] = None
    remote: Optional[WorkflowSpec] = None

    @property
    def is_copilot_setup(self) -> bool:
        return self.yaml_workflow is not None and self.yaml_workflow.is_copilot_setup


@dataclass
class ImportsResult:
    """Merged contributions of every resolved import, in processing order."""

    imported_files: list[str] = field(default_factory=list)
    merged_tools: dict[str, Any] = field(default_factory=dict)
    merged_mcp_servers: dict[str, Any] = field(default_factory=dict)
    merged_services: dict[str, Any] = field(default_factory=dict)
    merged_permissions: dict[str, Any] = field(default_factory=dict)
    merged_network: dict[str, Any] = field(default_factory=dict)
    merged_runtimes: dict[str, Any] = field(default_factory=dict)
    merged_safe_outputs: dict[str, Any] = field(default_factory=dict)
    merged_secret_masking: dict[str, Any] = field(default_factory=dict)
    merged_engine: Any = None
    merged_steps: list[Any] = field(default_factory=list)
    merged_jobs: dict[str, Any] = field(default_factory=dict)
    merged_markdown: str = ""
    copilot_setup_steps: str = ""
    import_inputs: dict[str, dict[str, Any]] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Plain-data view, e.g. for JSON output."""
        return {
            "imported_files": self.imported_files,
            "tools": self.merged_tools,
            "mcp-servers": self.merged_mcp_servers,
            "services": self.merged_services,
            "permissions": self.merged_permissions,
            "network": self.merged_network,
            "runtimes": self.merged_runtimes,
            "safe-outputs": self.merged_safe_outputs,
            "secret-masking": self.merged_secret_masking,
            "engine": self.merged_engine,
            "steps": self.merged_steps,
            "jobs": self.merged_jobs,
            "copilot-setup-steps": self.copilot_setup_steps,
            "import-inputs": self.import_inputs,
        }


def normalize_imports(value: Any) -> list[ImportSpec]:
    """
    Normalize an ``imports:`` field into ImportSpecs.

    Entries may be plain paths, directive-shaped strings
    (``{{#import? path}}``, ``@include? path``) or objects with ``path``
    (required), ``inputs`` and ``optional``.

    Raises:
        ImportSpecError: For entries of the wrong type or shape.
    """
    if value is None:
        return []
    if not isinstance(value, (list, tuple)):
        raise ImportSpecError(f"imports must be a list, got {yaml_kind(value)}", entry=value)

    specs = []
    for entry in value:
        if isinstance(entry, str):
            specs.append(_spec_from_string(entry))
        elif isinstance(entry, dict):
            specs.append(_spec_from_mapping(entry))
        else:
            raise ImportSpecError(
                f"import entry must be a string or an object with 'path', got {yaml_kind(entry)}",
                entry=entry,
            )
    return specs


def _spec_from_string(entry: str) -> ImportSpec:
    directive = parse_import_directive(entry)
    if directive is not None:
        return ImportSpec(path=directive.path, optional=directive.is_optional)

    path = entry.strip()
    if not path:
        raise ImportSpecError("import path must not be empty", entry=entry)
    return ImportSpec(path=path)


def _spec_from_mapping(entry: dict[str, Any]) -> ImportSpec:
    path = entry.get("path")
    if not isinstance(path, str) or not path.strip():
        raise ImportSpecError("import object requires a non-empty 'path' string", entry=entry)

    inputs = entry.get("inputs", {})
    if inputs is None:
        inputs = {}
    if not isinstance(inputs, dict):
        raise ImportSpecError(
            f"import 'inputs' must be a mapping, got {yaml_kind(inputs)}", entry=entry
        )

    optional = entry.get("optional", False)
    if not isinstance(optional, bool):
        raise ImportSpecError(
            f"import 'optional' must be a boolean, got {yaml_kind(optional)}", entry=entry
        )

    return ImportSpec(path=path.strip(), optional=optional, inputs=dict(inputs))


class _VisitState(Enum):
    IN_PROGRESS = 1
    DONE = 2


@dataclass
class _Declarer:
    """The document that declares a set of imports."""

    file_path: str
    source: Optional[str]
    remote: Optional[WorkflowSpec] = None


@dataclass
class _Traversal:
    """Per-call graph state; never shared between resolve() calls."""

    states: dict[str, _VisitState] = field(default_factory=dict)
    path: list[str] = field(default_factory=list)
    nodes: dict[str, ImportNode] = field(default_factory=dict)
    children: dict[str, list[str]] = field(default_factory=dict)
    files: dict[str, str] = field(default_factory=dict)


class ImportResolver:
    """
    Resolve and merge the imports of one workflow document.

    Args:
        base_dir: Directory that local import paths resolve against.
        manifest: Remote content cache shared across the resolution. A new
            one is created when omitted.
        fetcher: Callable returning remote content for ``owner/repo/path@ref``.
        config: Resolver settings (setup job name, checkout action).
        log: Logger for traversal diagnostics; defaults to this module's
            logger, which is silent unless the host configures logging.
        file_path: Path of the declaring document, for error locations.
        source: Raw text of the declaring document, for error locations.
    """

    def __init__(
        self,
        base_dir: Union[str, Path],
        manifest: Optional[ImportManifest] = None,
        fetcher: Optional[Fetcher] = None,
        config: Optional[MdflowConfig] = None,
        log: Optional[logging.Logger] = None,
        file_path: str = "",
        source: Optional[str] = None,
    ):
        self.base_dir = Path(base_dir)
        self.manifest = manifest if manifest is not None else ImportManifest()
        self.fetcher = fetcher
        self.config = config or MdflowConfig()
        self.log = log or logger
        self.file_path = file_path
        self.source = source

    def resolve(self, frontmatter: dict[str, Any]) -> ImportsResult:
        """
        Resolve every import declared by ``frontmatter``.

        Raises:
            WorkflowImportError: On the first hard failure (structural,
                missing source, cycle or parse error). No partial result is
                returned.
        """
        traversal = _Traversal()
        root = _Declarer(file_path=self.file_path, source=self.source)

        specs = self._normalize(frontmatter.get("imports"), root)
        self.log.debug("Resolving %d top-level imports from %s", len(specs), self.base_dir)

        for spec in specs:
            self._visit(spec, root, traversal)

        order = topological_order(traversal.nodes, traversal.children)
        self.log.debug("Import order: %s", order)

        result = ImportsResult(imported_files=order)
        markdown_parts = []
        for identity in order:
            node = traversal.nodes[identity]
            self._merge(node, result)
            if node.markdown.strip():
                markdown_parts.append(node.markdown.strip("\n"))
        result.merged_markdown = "\n\n".join(markdown_parts)
        return result

    def _normalize(self, value: Any, declarer: _Declarer) -> list[ImportSpec]:
        try:
            return normalize_imports(value)
        except ImportSpecError as e:
            entry = e.entry
            import_path = entry.get("path", "") if isinstance(entry, dict) else entry
            raise self._import_error(
                import_path if isinstance(import_path, str) else "imports", declarer, e
            ) from e

    def _identity(self, spec: ImportSpec, declarer: _Declarer) -> str:
        if declarer.remote is None:
            return spec.path
        file_part, section = split_section(spec.path)
        if is_workflow_spec(file_part):
            return spec.path
        # relative imports inside remote documents stay in the same repo and ref
        resolved = str(declarer.remote.join(file_part))
        return f"{resolved}#{section}" if section else resolved

    def _visit(
        self, spec: ImportSpec, declarer: _Declarer, traversal: _Traversal
    ) -> Optional[str]:
        try:
            identity = self._identity(spec, declarer)
        except WorkflowParseError as e:
            raise self._import_error(spec.path, declarer, e) from e

        state = traversal.states.get(identity)
        if state is _VisitState.DONE:
            self.log.debug("Import already resolved: %s", identity)
            return identity
        if state is _VisitState.IN_PROGRESS:
            cycle = traversal.path[traversal.path.index(identity) :] + [identity]
            raise self._import_error(spec.path, declarer, CircularImportError(cycle))

        traversal.states[identity] = _VisitState.IN_PROGRESS
        traversal.path.append(identity)

        try:
            node = self._load(spec, identity, declarer, traversal)
        except (ImportFileNotFoundError, RemoteFetchError) as e:
            if spec.optional:
                self.log.info("Skipping missing optional import %s: %s", identity, e)
                traversal.states.pop(identity)
                traversal.path.pop()
                return None
            raise self._import_error(spec.path, declarer, e) from e
        except WorkflowImportError:
            raise
        except WorkflowParseError as e:
            raise self._import_error(spec.path, declarer, e) from e

        child_declarer = _Declarer(file_path=node.location, source=node.source, remote=node.remote)
        child_specs = self._normalize(node.frontmatter.get("imports"), child_declarer)
        node.children = child_specs

        child_identities = []
        for child in child_specs:
            child_identity = self._visit(child, child_declarer, traversal)
            if child_identity is not None:
                child_identities.append(child_identity)

        traversal.path.pop()
        traversal.states[identity] = _VisitState.DONE
        traversal.nodes[identity] = node
        traversal.children[identity] = child_identities
        self.log.debug("Resolved import %s (%d children)", identity, len(child_identities))
        return identity

    def _load(
        self, spec: ImportSpec, identity: str, declarer: _Declarer, traversal: _Traversal
    ) -> ImportNode:
        file_part, section = split_section(identity)

        remote = None
        if is_workflow_spec(file_part):
            remote = parse_workflow_spec(file_part)
            location = str(remote)
            content = self._fetch(location)
        else:
            full_path = self.base_dir / file_part
            location = str(full_path)
            content = traversal.files.get(location)
            if content is None:
                if not full_path.is_file():
                    raise ImportFileNotFoundError(location)
                self.log.debug("Reading import file: %s", full_path)
                content = full_path.read_text()
            traversal.files[location] = content

        node = ImportNode(
            identity=identity, spec=spec, location=location, source=content, remote=remote
        )

        if is_yaml_workflow_file(file_part):
            node.yaml_workflow = process_yaml_workflow_import(content, file_part, self.config)
            return node

        document = extract_frontmatter_from_content(content, location)
        node.frontmatter = document.frontmatter
        node.markdown = document.markdown
        if section:
            node.markdown = extract_markdown_section(document.markdown, section, file_part)
        return node

    def _fetch(self, key: str) -> str:
        cached = self.manifest.get(key)
        if cached is not None:
            return cached
        if self.fetcher is None:
            raise RemoteFetchError(key, "no remote fetcher configured")

        try:
            return self.manifest.get_or_fetch(key, self.fetcher)
        except WorkflowParseError:
            raise
        except Exception as e:
            raise RemoteFetchError(key, str(e)) from e

    def _import_error(
        self, import_path: str, declarer: _Declarer, cause: BaseException
    ) -> WorkflowImportError:
        line, column = 0, 0
        if declarer.source is not None:
            line, column = find_import_item_location(declarer.source, import_path)
        self.log.debug("Import %s failed: %s", import_path, cause)
        return WorkflowImportError(
            import_path=import_path,
            file_path=declarer.file_path,
            line=line,
            column=column,
            cause=cause,
            source=declarer.source,
        )

    def _merge(self, node: ImportNode, result: ImportsResult) -> None:
        identity = node.identity

        if node.spec.inputs:
            result.import_inputs[identity] = copy.deepcopy(node.spec.inputs)

        if node.yaml_workflow is not None:
            workflow = node.yaml_workflow
            if workflow.is_copilot_setup:
                if result.copilot_setup_steps:
                    self.log.warning(
                        "Multiple setup-steps imports; %s replaces the earlier one", identity
                    )
                result.copilot_setup_steps = workflow.copilot_setup_steps
                return
            result.merged_jobs.update(copy.deepcopy(workflow.jobs))
            result.merged_services.update(copy.deepcopy(workflow.services))
            return

        frontmatter = node.frontmatter
        for section, attr in MERGED_MAPPING_SECTIONS.items():
            if section not in frontmatter:
                continue
            values = mapping_or_empty(frontmatter[section], f"{identity}: {section}", self.log)
            getattr(result, attr).update(copy.deepcopy(values))

        if "engine" in frontmatter and frontmatter["engine"] is not None:
            engine = copy.deepcopy(frontmatter["engine"])
            if isinstance(engine, dict) and isinstance(result.merged_engine, dict):
                result.merged_engine = {**result.merged_engine, **engine}
            else:
                result.merged_engine = engine

        steps = sequence_or_empty(frontmatter.get("steps"), f"{identity}: steps", self.log)
        result.merged_steps.extend(copy.deepcopy(steps))

        jobs = mapping_or_empty(frontmatter.get("jobs"), f"{identity}: jobs", self.log)
        result.merged_jobs.update(copy.deepcopy(jobs))


def process_imports_from_frontmatter(
    frontmatter: dict[str, Any],
    base_dir: Union[str, Path],
    manifest: Optional[ImportManifest] = None,
    *,
    fetcher: Optional[Fetcher] = None,
    config: Optional[MdflowConfig] = None,
    log: Optional[logging.Logger] = None,
) -> ImportsResult:
    """
    Resolve and merge the imports declared in ``frontmatter``.

    Raises:
        WorkflowImportError: If any import cannot be resolved.
    """
    resolver = ImportResolver(
        base_dir, manifest=manifest, fetcher=fetcher, config=config, log=log
    )
    return resolver.resolve(frontmatter)


def process_imports_from_frontmatter_with_source(
    frontmatter: dict[str, Any],
    base_dir: Union[str, Path],
    manifest: Optional[ImportManifest],
    file_path: str,
    content: str,
    *,
    fetcher: Optional[Fetcher] = None,
    config: Optional[MdflowConfig] = None,
    log: Optional[logging.Logger] = None,
) -> ImportsResult:
    """
    Like ``process_imports_from_frontmatter``, reporting failures against
    the declaring document.

    Raises:
        FormattedImportError: With a ``file:line:col: error: message``
            rendering and a source context window.
    """
    resolver = ImportResolver(
        base_dir,
        manifest=manifest,
        fetcher=fetcher,
        config=config,
        log=log,
        file_path=file_path,
        source=content,
    )
    try:
        return resolver.resolve(frontmatter)
    except WorkflowImportError as e:
        source = e.source if e.source is not None else content
        raise FormattedImportError(format_import_error(e, source), e) from e
