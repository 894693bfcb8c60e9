"""Threading for comment rows."""

from typing import Any


def thread(roots: list[dict[str, Any]], replies: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """
    Nest ``replies`` under ``roots``, keeping the order each list is given in.

    Every comment gets a ``replies`` list and a ``depth``. Replies that do not
    lead back to one of ``roots`` (their parent was deleted or is on another
    page) are dropped.
    """
    nodes = {row["id"]: {**row, "replies": [], "depth": 0} for row in roots}
    result = [nodes[row["id"]] for row in roots]
    pending = list(replies)
    while pending:
        remaining = []
        for row in pending:
            parent = nodes.get(row.get("parent_id"))
            if parent is None:
                remaining.append(row)
                continue
            node = {**row, "replies": [], "depth": parent["depth"] + 1}
            nodes[row["id"]] = node
            parent["replies"].append(node)
        if len(remaining) == len(pending):
            break
        pending = remaining
    return result


def excerpt(content: str, length: int = 100) -> str:
    return content if len(content) <= length else content[: length - 1].rstrip() + "…"
