"""
Structural diff of member record sections.

Only plain dicts are walked. Every other value, lists included, is compared as
a single leaf, so a reordered role list shows up as one change of the whole
list. Keys missing from ``after`` are not reported: a save always carries the
full section.
"""

import copy
from typing import Any, Mapping

from services.members_service.schemas import FieldChange


def _is_branch(value: Any) -> bool:
    return isinstance(value, Mapping)


def _differs(old: Any, new: Any) -> bool:
    # True == 1 in Python; a checkbox flipping to a count is still a change
    if isinstance(old, bool) != isinstance(new, bool):
        return True
    return old != new


def diff_records(before: Any, after: Any, prefix: str = "") -> dict[str, FieldChange]:
    """
    Changed leaf fields between two versions of a section.

    Args:
        before: previous section value (may be None)
        after: new section value
        prefix: path reported when ``after`` is itself a leaf, e.g. the
            ``roles`` section

    Returns:
        ``{"dot.path": FieldChange(old, new)}``; fields absent from ``before``
        are reported with ``old=None``
    """
    if not _is_branch(after):
        if _differs(before, after):
            return {prefix: FieldChange(old=before, new=after)}
        return {}

    changes: dict[str, FieldChange] = {}
    _walk(before if _is_branch(before) else {}, after, prefix, changes)
    return changes


def _walk(
    before: Mapping, after: Mapping, prefix: str, changes: dict[str, FieldChange]
) -> None:
    for key, new_value in after.items():
        path = f"{prefix}.{key}" if prefix else str(key)
        old_value = before.get(key)

        if _is_branch(new_value):
            _walk(old_value if _is_branch(old_value) else {}, new_value, path, changes)
        elif key not in before or _differs(old_value, new_value):
            changes[path] = FieldChange(
                old=copy.deepcopy(old_value), new=copy.deepcopy(new_value)
            )


def apply_changes(
    before: Any, changes: Mapping[str, FieldChange], prefix: str = ""
) -> Any:
    """Write each change's ``new`` value onto a copy of ``before``."""
    if prefix in changes:
        return copy.deepcopy(changes[prefix].new)

    result = copy.deepcopy(before) if _is_branch(before) else {}
    for path, change in changes.items():
        if prefix:
            path = path[len(prefix) + 1 :]
        parts = path.split(".")
        target = result
        for part in parts[:-1]:
            if not _is_branch(target.get(part)):
                target[part] = {}
            target = target[part]
        target[parts[-1]] = copy.deepcopy(change.new)
    return result
