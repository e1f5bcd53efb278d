"""Link resolution over loaded documents.

A document's JSON content is first lifted into a small node tree
(Scalar, ListNode, MapNode, Link) so that walking it is a plain visitor,
in the spirit of ``ast.NodeVisitor``. Links look like ``{"/": "./sales_1.json"}``
or ``{"/": "<document id>"}``.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from factsheet.ipld.store import Document

logger = logging.getLogger(__name__)

LINK_KEY = "/"


@dataclass(frozen=True)
class Scalar:
    value: Any


@dataclass(frozen=True)
class Link:
    target: str

    @property
    def target_id(self) -> str:
        return link_target_id(self.target)


@dataclass(frozen=True)
class ListNode:
    items: Tuple["Node", ...]


@dataclass(frozen=True)
class MapNode:
    fields: Tuple[Tuple[str, "Node"], ...]


Node = Union[Scalar, Link, ListNode, MapNode]


def is_link(value: Any) -> bool:
    """True iff value is exactly ``{"/": "<string>"}``."""
    return (
        isinstance(value, dict)
        and len(value) == 1
        and isinstance(value.get(LINK_KEY), str)
    )


def link_target_id(target: str) -> str:
    """'./sales_1.json' -> 'sales_1'; anything else is already an id."""
    if target.startswith("./"):
        name = target[2:].rsplit("/", 1)[-1]
        return name[: -len(".json")] if name.endswith(".json") else name
    return target


def to_node(value: Any) -> Node:
    """Lift a parsed JSON value into the node tree."""
    if is_link(value):
        return Link(value[LINK_KEY])
    if isinstance(value, dict):
        return MapNode(tuple((str(k), to_node(v)) for k, v in value.items()))
    if isinstance(value, list):
        return ListNode(tuple(to_node(v) for v in value))
    return Scalar(value)


class NodeVisitor:
    """Walks a node tree, tracking the dotted/indexed field path.

    Subclasses override ``visit_link`` / ``visit_scalar``; lists and maps
    are descended by default.
    """

    def visit(self, node: Node, path: str = "") -> None:
        if isinstance(node, Link):
            self.visit_link(node, path)
        elif isinstance(node, MapNode):
            self.visit_map(node, path)
        elif isinstance(node, ListNode):
            self.visit_list(node, path)
        else:
            self.visit_scalar(node, path)

    def visit_map(self, node: MapNode, path: str) -> None:
        for key, child in node.fields:
            self.visit(child, f"{path}.{key}" if path else key)

    def visit_list(self, node: ListNode, path: str) -> None:
        for i, child in enumerate(node.items):
            self.visit(child, f"{path}[{i}]")

    def visit_link(self, node: Link, path: str) -> None:
        pass

    def visit_scalar(self, node: Scalar, path: str) -> None:
        pass


class LinkCollector(NodeVisitor):
    """Collects every (field path, Link) pair in a tree."""

    def __init__(self):
        self.links: List[Tuple[str, Link]] = []

    def visit_link(self, node: Link, path: str) -> None:
        self.links.append((path, node))


def collect_links(content: Any) -> List[Tuple[str, Link]]:
    collector = LinkCollector()
    collector.visit(to_node(content))
    return collector.links


def resolve_link(value: Any, documents: Mapping[str, Document]) -> Optional[Document]:
    """Return the document a link value points to, or None."""
    if not is_link(value):
        return None
    return documents.get(link_target_id(value[LINK_KEY]))


def resolve_links(documents: Mapping[str, Document]) -> Dict[str, Dict[str, str]]:
    """Build the relationship table of every document.

    Returns ``{doc_id: {field_path: target_doc_id}}``. Targets may be any
    loaded document; links to ids that are not loaded are dropped.
    """
    graph: Dict[str, Dict[str, str]] = {}
    dropped = 0
    for doc_id, doc in documents.items():
        table: Dict[str, str] = {}
        try:
            links = collect_links(doc.content)
        except RecursionError:
            logger.warning("Document %s is nested too deeply to scan for links; skipping its links", doc_id)
            links = []
        for path, link in links:
            target_id = link.target_id
            if target_id in documents:
                table[path] = target_id
            else:
                dropped += 1
                logger.debug("Unresolved link %s.%s -> %s", doc_id, path, link.target)
        graph[doc_id] = table

    if dropped:
        logger.debug("Dropped %d unresolved links", dropped)
    return graph
