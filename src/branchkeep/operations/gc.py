"""Shadow-reference garbage collection.

The native store only keeps commits reachable from references. Commits
the user can still see but that no branch points at (for example the
pre-rewrite versions hidden behind an in-progress rebase) are kept alive
by pinning them under a reserved namespace, one reference per commit:
``refs/branchless/<oid>``.

``collect_garbage`` later reconciles that namespace against the visible
commit set and deletes the references whose commits have left it. It
never touches references outside the reserved namespace.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import TYPE_CHECKING, TextIO

from branchkeep.exceptions import (
    InvalidRefNameError,
    ObjectNotFoundError,
    RefResolutionError,
    VisibilityError,
)
from branchkeep.models.config import DEFAULT_GC_PROGRESS_MESSAGE, DEFAULT_PIN_MESSAGE
from branchkeep.models.gc import GCResult
from branchkeep.refs import (
    DEFAULT_GC_REF_PREFIX,
    check_reference_name,
    gc_ref_name,
    is_gc_ref,
)

if TYPE_CHECKING:
    from branchkeep.models.refs import Reference
    from branchkeep.storage.repositories import ReferenceStore

logger = logging.getLogger(__name__)

VisibilityProvider = Callable[[], set[str]]


def mark_commit_reachable(
    ref_store: ReferenceStore,
    commit_oid: str,
    *,
    prefix: str = DEFAULT_GC_REF_PREFIX,
    message: str = DEFAULT_PIN_MESSAGE,
) -> str:
    """Mark a commit as reachable.

    Once marked, the commit won't be collected by the native garbage
    collector until first released by :func:`collect_garbage`. Pinning
    the same commit again rewrites the same reference with the same
    value.

    Args:
        ref_store: Reference store to write to.
        commit_oid: Id of a commit already present in the store.
        prefix: Reserved namespace for GC references.
        message: Provenance recorded with the reference write.

    Returns:
        The reserved reference name.

    Raises:
        InvalidRefNameError: If the id cannot form a valid reserved
            reference name.
        ObjectNotFoundError: If the commit is not in the store.
        StoreAccessError: If the reference write fails.
    """
    ref_name = gc_ref_name(commit_oid, prefix)
    # A name the sweep does not recognise as reserved could never be freed
    if not is_gc_ref(ref_name, prefix):
        raise InvalidRefNameError(ref_name, "not a reserved GC reference name")
    if not ref_store.is_valid_reference_name(ref_name):
        reason = check_reference_name(ref_name) or "rejected by reference store"
        raise InvalidRefNameError(ref_name, reason)

    ref_store.create_or_update_reference(ref_name, commit_oid, message)
    logger.debug("Pinned commit %s as %s", commit_oid, ref_name)
    return ref_name


def find_dangling_references(
    ref_store: ReferenceStore,
    visible: set[str],
    *,
    prefix: str = DEFAULT_GC_REF_PREFIX,
) -> tuple[list[Reference], int, int]:
    """Classify every reference against the visible set.

    A reference is dangling when its name is in the reserved namespace
    and it peels to a commit absent from *visible*. References that fail
    to resolve, or that do not peel to a commit, are skipped.

    Returns:
        ``(dangling, scanned, skipped)``.

    Raises:
        StoreAccessError: If the reference namespace cannot be listed.
    """
    dangling: list[Reference] = []
    skipped = 0
    references = ref_store.list_references()

    for reference in references:
        try:
            target = ref_store.resolve(reference)
            commit_oid = ref_store.peel_to_commit(target)
        except (RefResolutionError, ObjectNotFoundError) as exc:
            logger.debug("Skipping unresolvable reference %s: %s", reference.name, exc)
            skipped += 1
            continue

        # The visible set only holds commits; refs to other objects
        # (tags of blobs, notes) are outside our concern.
        if commit_oid is None:
            logger.debug("Skipping %s: does not peel to a commit", reference.name)
            skipped += 1
            continue

        if is_gc_ref(reference.name, prefix) and commit_oid not in visible:
            dangling.append(reference)

    return dangling, len(references), skipped


def collect_garbage(
    ref_store: ReferenceStore,
    visibility: VisibilityProvider,
    out: TextIO | None = None,
    *,
    prefix: str = DEFAULT_GC_REF_PREFIX,
    progress_message: str = DEFAULT_GC_PROGRESS_MESSAGE,
) -> GCResult:
    """Run the shadow-reference sweep.

    Frees any reserved references to commits which are no longer visible.

    Args:
        ref_store: Reference store to reconcile.
        visibility: Zero-argument callable returning the visible commit set.
        out: Text sink for the single start-of-pass progress line.
        prefix: Reserved namespace for GC references.
        progress_message: Text of the progress line.

    Returns:
        :class:`GCResult` with scan counts and deleted reference names.

    Raises:
        VisibilityError: If the visible set cannot be computed. Nothing
            is deleted in that case.
        StoreAccessError: If listing or deleting references fails.
            References deleted before the failure stay deleted.
    """
    start = time.monotonic()
    if out is not None:
        out.write(progress_message + "\n")

    try:
        visible = visibility()
    except Exception as exc:
        raise VisibilityError(f"Computing visible commits failed: {exc}") from exc

    dangling, scanned, skipped = find_dangling_references(
        ref_store, visible, prefix=prefix
    )

    deleted: list[str] = []
    for reference in dangling:
        ref_store.delete_reference(reference)
        deleted.append(reference.name)

    result = GCResult(
        refs_scanned=scanned,
        refs_skipped=skipped,
        deleted=tuple(deleted),
        duration_seconds=time.monotonic() - start,
    )
    logger.info(
        "Garbage collection scanned %d references, deleted %d, skipped %d",
        result.refs_scanned,
        result.refs_deleted,
        result.refs_skipped,
    )
    return result
