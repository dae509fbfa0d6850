"""Diff engine: desired vs. current tags per file."""

from concurrent.futures import ThreadPoolExecutor
from typing import Dict, Iterable, List, Mapping

from kiln.models import (
    Add, Delete, DiffOp, FileDiff, Modify, TagId, TagState
)


def _by_frame_id(tag_id: TagId) -> str:
    return tag_id.frame_id


def compute_diff(desired: Mapping, current: Mapping,
                 preserve: Iterable[TagId] = ()) -> List[DiffOp]:
    """
    Compute the operations that turn current into desired.

    Identifiers are compared, not values: an identifier in both states with
    different values is one Modify. Identifiers in the preserve set are never
    deleted, but are still added or modified.

    Args:
        desired: Desired tags keyed by TagId
        current: Current tags keyed by TagId
        preserve: Identifiers exempt from deletion

    Returns:
        Add/Modify operations sorted by frame id, then Delete operations
        sorted by frame id.
    """
    preserved = set(preserve)
    changes: List[DiffOp] = []
    deletes: List[DiffOp] = []

    for tag_id in sorted(desired, key=_by_frame_id):
        new = desired[tag_id]
        old = current.get(tag_id)
        if old is None:
            changes.append(Add(new))
        elif old.value != new.value:
            changes.append(Modify(old, new))

    for tag_id in sorted(current, key=_by_frame_id):
        if tag_id in desired or tag_id in preserved:
            continue
        deletes.append(Delete(current[tag_id]))

    return changes + deletes


def apply_ops(state: Mapping, ops: Iterable[DiffOp]) -> TagState:
    """Return the state that results from applying ops to state."""
    result = dict(state)
    for op in ops:
        if isinstance(op, Delete):
            result.pop(op.tag_id, None)
        else:
            result[op.tag_id] = op.new
    return result


def has_changes(file_diffs: Iterable[FileDiff]) -> bool:
    """True if any file has at least one operation."""
    return any(fd.has_changes for fd in file_diffs)


def diff_files(desired: Dict[str, TagState], store,
               preserve: Iterable[TagId] = (), workers: int = 1) -> List[FileDiff]:
    """
    Read each file's current tags and diff it against its desired state.

    Files are independent, so reads and diffs run on a thread pool. Results
    keep the order of desired.

    Args:
        desired: Desired tags per file path
        store: Object with read_current(file_path) -> TagState
        preserve: Identifiers exempt from deletion
        workers: Maximum number of worker threads

    Raises:
        StoreReadError: from the first file (in order) that cannot be read;
            no further results are returned
    """
    preserved = frozenset(preserve)

    def diff_one(file_path: str) -> FileDiff:
        current = store.read_current(file_path)
        return FileDiff(file_path, compute_diff(desired[file_path], current, preserved))

    with ThreadPoolExecutor(max_workers=max(1, workers)) as pool:
        futures = [pool.submit(diff_one, file_path) for file_path in desired]
        results = []
        try:
            for future in futures:
                results.append(future.result())
        except Exception:
            for future in futures:
                future.cancel()
            raise
    return results
