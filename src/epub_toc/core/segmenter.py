"""Carve document content into per-TOC-node slices.

Three strategies, chosen from the resolved tree:

- a single node takes its whole file;
- when every node points into the same file, each node takes the run of
  sibling elements from its anchor up to the next node's anchor;
- otherwise each node takes the spine documents from its own section up to
  (not including) the next sibling's section.

Every pass returns a new tree; input nodes are never modified.
"""

import logging

from bs4.element import Tag

from epub_toc.core.archive import EpubArchive
from epub_toc.core.content_processor import ContentProcessor
from epub_toc.core.paths import resolve_path
from epub_toc.core.sections import Section
from epub_toc.errors import NotFoundError
from epub_toc.models.epub import TocNode

log = logging.getLogger(__name__)


def resolve_file_paths(nodes: list[TocNode], root: str) -> list[TocNode]:
    """Return a copy of the tree with ``file_path`` set on every node.

    Only ``path`` is read, so resolving an already resolved tree is a no-op.
    """
    return [
        node.model_copy(
            update={
                "file_path": resolve_path(node.path.split("#", 1)[0], root),
                "children": resolve_file_paths(node.children, root),
            }
        )
        for node in nodes
    ]


def flatten(nodes: list[TocNode]) -> list[TocNode]:
    """All nodes of the tree in pre-order."""
    return [node for top in nodes for node in top.iter_nodes()]


class ContentSegmenter:
    """Fill ``content`` and ``markdown_content`` for a TOC tree."""

    def __init__(
        self,
        archive: EpubArchive,
        spine: list[str],
        sections: list[Section],
        root: str,
        processor: ContentProcessor | None = None,
    ):
        self.archive = archive
        self.spine = spine
        self.sections = {section.id: section for section in sections}
        self.root = root
        self.processor = processor or ContentProcessor()

    def segment(self, nodes: list[TocNode]) -> list[TocNode]:
        resolved = resolve_file_paths(nodes, self.root)
        flat = flatten(resolved)
        if not flat:
            return resolved

        if len(flat) == 1:
            log.debug("Segmenting single node")
            return [self._with_file_content(resolved[0])]

        if len({node.file_path for node in flat}) == 1:
            log.debug("Segmenting %d nodes within %s", len(flat), flat[0].file_path)
            return self._segment_same_file(resolved, None)

        log.debug("Segmenting %d nodes across files", len(flat))
        return self._segment_per_file(resolved)

    # -------------------------------------------------------------------------
    # Shared helpers
    # -------------------------------------------------------------------------

    def _read_file(self, path: str | None) -> str | None:
        if not path:
            return None
        try:
            return self.archive.file(path).text
        except NotFoundError:
            log.debug("File %s not in archive, leaving content empty", path)
            return None

    def _with_file_content(self, node: TocNode, **update) -> TocNode:
        text = self._read_file(node.file_path)
        if text is not None:
            update["content"] = text
            update["markdown_content"] = self.processor.to_markdown(text)
        return node.model_copy(update=update)

    # -------------------------------------------------------------------------
    # Same-file strategy
    # -------------------------------------------------------------------------

    def _segment_same_file(
        self, items: list[TocNode], boundary: TocNode | None
    ) -> list[TocNode]:
        """Slice one level of the tree; ``boundary`` bounds the last sibling."""
        result = []
        for index, item in enumerate(items):
            next_item = items[index + 1] if index + 1 < len(items) else None
            update: dict = {}

            if item.node_id is not None:
                next_node_id = None
                if (
                    next_item is not None
                    and next_item.node_id is not None
                    and next_item.file_path == item.file_path
                ):
                    next_node_id = next_item.node_id
                elif (
                    boundary is not None
                    and boundary.node_id is not None
                    and boundary.file_path == item.file_path
                ):
                    next_node_id = boundary.node_id
                update["next_node_id"] = next_node_id

                content = self._slice_between(item.file_path, item.node_id, next_node_id)
                if content is not None:
                    update["content"] = content
                    update["markdown_content"] = self.processor.to_markdown(content)

            if item.children:
                child_boundary = next_item if next_item is not None else boundary
                update["children"] = self._segment_same_file(item.children, child_boundary)

            result.append(item.model_copy(update=update))
        return result

    def _slice_between(
        self, path: str | None, node_id: str, next_node_id: str | None
    ) -> str | None:
        """HTML of the element with id ``node_id`` and its following siblings.

        Collection stops before the element with id ``next_node_id`` or when
        the siblings run out. The result is wrapped in a ``<div>``.
        """
        if not path:
            return None
        try:
            soup = self.archive.file(path).soup
        except NotFoundError:
            log.debug("File %s not in archive, leaving content empty", path)
            return None

        current = soup.find(id=node_id)
        if current is None:
            log.debug("Anchor #%s not found in %s", node_id, path)
            return None
        stop = soup.find(id=next_node_id) if next_node_id is not None else None

        elements = []
        node = current
        while node is not None and node is not stop:
            if isinstance(node, Tag):
                elements.append(str(node))
            node = node.next_sibling

        return "<div>" + "".join(elements) + "</div>"

    # -------------------------------------------------------------------------
    # Per-file strategy
    # -------------------------------------------------------------------------

    def _segment_per_file(self, items: list[TocNode]) -> list[TocNode]:
        result = []
        for index, item in enumerate(items):
            next_item = items[index + 1] if index + 1 < len(items) else None
            children = self._segment_per_file(item.children) if item.children else item.children

            span = self._spine_span(item, next_item)
            if span is None:
                result.append(self._with_file_content(item, children=children))
                continue

            merged = [self.sections[section_id] for section_id in span]
            result.append(
                item.model_copy(
                    update={
                        "content": "\n".join(section.html_string for section in merged),
                        "markdown_content": "\n\n".join(section.markdown for section in merged),
                        "children": children,
                    }
                )
            )
        return result

    def _spine_span(self, item: TocNode, next_item: TocNode | None) -> list[str] | None:
        """Spine ids from ``item``'s section up to ``next_item``'s, exclusive.

        None means the node falls back to its own file.
        """
        if not self.spine or item.section_id is None:
            return None
        if next_item is None or next_item.section_id is None:
            return None
        if item.section_id not in self.spine or next_item.section_id not in self.spine:
            return None

        start = self.spine.index(item.section_id)
        end = self.spine.index(next_item.section_id)
        if end <= start:
            return None

        span = self.spine[start:end]
        if any(section_id not in self.sections for section_id in span):
            return None
        return span
