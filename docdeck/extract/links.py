from __future__ import annotations

import logging
from urllib.parse import urljoin

from ..core.tree import DocumentTree

logger = logging.getLogger("docdeck.extract")

LINK_ATTRIBUTES = frozenset({"href", "src"})


def normalize_links(tree: DocumentTree, base: str) -> int:
    """Rewrite every href/src attribute to an absolute URL, in place.

    An attribute that cannot be resolved is left as it is.

    Returns:
        Number of attributes that were resolved
    """
    resolved = 0
    for index in tree.descendants(tree.root):
        node = tree[index]
        if not node.is_element:
            continue
        for position, (key, value) in enumerate(node.attrs):
            if key not in LINK_ATTRIBUTES or not value:
                continue
            try:
                target = urljoin(base, value)
            except ValueError as exc:
                logger.debug("Cannot resolve %s=%r against %s: %s", key, value, base, exc)
                continue
            node.attrs[position] = (key, target)
            resolved += 1
    return resolved
