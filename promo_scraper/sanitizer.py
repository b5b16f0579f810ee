"""
Strips non-content markup from a rendered page before it is sent for selector inference.
"""

import re

from selectolax.parser import HTMLParser


REMOVED_ELEMENTS = ("head", "script", "style", "footer", "nav", "form", "iframe")

DENIED_ATTRIBUTES = {"id", "class", "style"}
DENIED_ATTRIBUTE_PREFIXES = ("on", "data-")

_WHITESPACE_RE = re.compile(r"\s+")


def _is_denied(name: str) -> bool:
    name = name.lower()
    return name in DENIED_ATTRIBUTES or name.startswith(DENIED_ATTRIBUTE_PREFIXES)


def _is_comment(node) -> bool:
    # Element tags start with a letter; parser pseudo-nodes do not
    tag = node.tag or ""
    return not tag[:1].isalpha() and (node.html or "").startswith("<!--")


def _remove_blocks(tree: HTMLParser) -> None:
    matches = tree.css(", ".join(REMOVED_ELEMENTS))
    outermost = []
    for node in matches:
        parent = node.parent
        while parent is not None and parent.tag not in REMOVED_ELEMENTS:
            parent = parent.parent
        if parent is None:
            outermost.append(node)
    # Nested matches go away with their outermost ancestor
    for node in outermost:
        node.decompose()


def _remove_comments(root) -> None:
    comments = [node for node in root.traverse() if _is_comment(node)]
    for node in comments:
        node.decompose()


def _strip_attributes(root) -> None:
    for node in root.traverse():
        attrs = node.attributes
        for name in [n for n in attrs if _is_denied(n)]:
            del node.attrs[name]


def sanitize_html(html: str) -> str:
    """
    Remove head/script/style/comment/footer/nav/form/iframe blocks, drop
    event-handler, id, class, style and data-* attributes, and collapse whitespace.

    Returns the serialized contents of <body>, so the rendered page's
    `document.body.outerHTML` comes back without its wrapper.
    """
    if not html or not html.strip():
        return ""

    tree = HTMLParser(html)
    _remove_blocks(tree)

    body = tree.body
    if body is None:
        return ""
    _remove_comments(body)
    _strip_attributes(body)

    inner = "".join(child.html or "" for child in body.iter(include_text=True))
    return _WHITESPACE_RE.sub(" ", inner).strip()
