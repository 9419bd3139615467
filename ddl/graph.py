# ddl/graph.py
from __future__ import annotations
import logging
from typing import Dict, Iterator, List, Set, Tuple

from reml.models import RemlSchema

logger = logging.getLogger(__name__)


def table_dependencies(schema: RemlSchema) -> Dict[str, List[str]]:
    """
    {table: [referenced tables]} in FK declaration order.
    Self-references and references to tables outside the schema are left out;
    neither can influence emission order.
    """
    deps: Dict[str, List[str]] = {}
    for name, table in schema.tables.items():
        targets: List[str] = []
        for fk in table.foreign_keys:
            ref = fk.references.table
            if ref == name or ref not in schema.tables or ref in targets:
                continue
            targets.append(ref)
        deps[name] = targets
    return deps


def order_tables(schema: RemlSchema) -> List[str]:
    """
    Depth-first topological order: referenced tables come first.

    A table reached again while still in progress closes a cycle; the edge is
    skipped (and logged) so ordering always terminates. Within a cycle the
    order is best effort. Iterative so that long FK chains cannot hit the
    recursion limit.
    """
    deps = table_dependencies(schema)
    ordered: List[str] = []
    done: Set[str] = set()
    in_progress: Set[str] = set()

    for root in deps:
        if root in done:
            continue
        in_progress.add(root)
        stack: List[Tuple[str, Iterator[str]]] = [(root, iter(deps[root]))]
        while stack:
            name, pending = stack[-1]
            for dep in pending:
                if dep in done:
                    continue
                if dep in in_progress:
                    logger.warning(
                        "Foreign-key cycle: %s -> %s; emission order is best effort", name, dep
                    )
                    continue
                in_progress.add(dep)
                stack.append((dep, iter(deps[dep])))
                break
            else:
                stack.pop()
                in_progress.discard(name)
                done.add(name)
                ordered.append(name)

    return ordered
