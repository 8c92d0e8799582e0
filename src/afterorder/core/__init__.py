"""Core resolution engine.

This package provides annotation reading, path canonicalization, concurrent
graph construction, the topological resolver, and the project pipeline that
writes the resulting compile order.

Classes:
    ResolverConfig: Configuration data model
    Canonicalizer: Maps references to File Identities
    DependencyGraph: Lock-guarded mapping of files to their dependencies
    GraphBuilder: Concurrent, memoized graph discovery
    TopologicalResolver: Iterative, cycle-tolerant flattening
    EntryPointNotFound, NotFound, Cycle: Resolution error variants
    ProjectResolver: Entry discovery, resolution and artifact output
"""

from afterorder.core.annotations import ANNOTATION_PREFIX, collect, read_file_lines
from afterorder.core.canonical import Canonicalizer, identity_remap
from afterorder.core.config import ResolverConfig, load_config, save_config
from afterorder.core.dependency_graph import (
    DependencyGraph,
    GraphBuilder,
    GraphFrozenError,
    build_graph,
)
from afterorder.core.orchestrator import ProjectResolver, ProjectResult, find_entrypoint
from afterorder.core.resolver import (
    Cycle,
    EntryPointNotFound,
    NotFound,
    Resolution,
    ResolutionError,
    TopologicalResolver,
    resolve,
)

__all__ = [
    "ANNOTATION_PREFIX",
    "collect",
    "read_file_lines",
    "Canonicalizer",
    "identity_remap",
    "ResolverConfig",
    "load_config",
    "save_config",
    "DependencyGraph",
    "GraphBuilder",
    "GraphFrozenError",
    "build_graph",
    "ProjectResolver",
    "ProjectResult",
    "find_entrypoint",
    "Cycle",
    "EntryPointNotFound",
    "NotFound",
    "Resolution",
    "ResolutionError",
    "TopologicalResolver",
    "resolve",
]
