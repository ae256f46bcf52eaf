"""Branch CRUD operations for branchkeep.

Create, delete, list, and validate branches.
Composes storage primitives (ref repo, object repo) into higher-level actions.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from branchkeep.exceptions import (
    BranchExistsError,
    BranchkeepError,
    BranchNotFoundError,
    InvalidBranchNameError,
    ObjectNotFoundError,
)
from branchkeep.refs import BRANCH_PREFIX, check_reference_name

if TYPE_CHECKING:
    from branchkeep.storage.repositories import ObjectRepository, RefRepository


def validate_branch_name(name: str) -> None:
    """Validate a branch name against git-style naming rules.

    Raises InvalidBranchNameError on violation.
    """
    if not name:
        raise InvalidBranchNameError(name, "branch name cannot be empty")
    if name.startswith("-"):
        raise InvalidBranchNameError(name, "branch name cannot start with '-'")
    reason = check_reference_name(f"{BRANCH_PREFIX}{name}")
    if reason is not None:
        raise InvalidBranchNameError(name, reason)


def create_branch(
    name: str,
    ref_repo: RefRepository,
    object_repo: ObjectRepository,
    *,
    source: str | None = None,
    switch: bool = False,
) -> str:
    """Create a new branch pointing at source commit.

    Args:
        name: Branch name (validated against naming rules).
        ref_repo: Ref repository for branch storage.
        object_repo: Object repository for validation.
        source: Commit id to branch from. Defaults to HEAD.
        switch: If True, attach HEAD to the new branch.

    Returns:
        The commit id the new branch points to.

    Raises:
        BranchExistsError: If branch name already exists.
        InvalidBranchNameError: If branch name is invalid.
        ObjectNotFoundError: If source does not exist.
        BranchkeepError: If no commits exist and no source specified.
    """
    validate_branch_name(name)

    if ref_repo.get_branch(name) is not None:
        raise BranchExistsError(name)

    if source is None:
        source = ref_repo.get_head()
        if source is None:
            raise BranchkeepError("Cannot create branch: no commits exist")
    elif not object_repo.exists(source):
        raise ObjectNotFoundError(source)

    ref_repo.set_branch(name, source, f"branch: created from {source}")

    if switch:
        ref_repo.attach_head(name)

    return source


def delete_branch(name: str, ref_repo: RefRepository) -> str:
    """Delete a branch and return the commit id it pointed to.

    Raises:
        BranchNotFoundError: If branch doesn't exist.
        BranchkeepError: If trying to delete the current branch.
    """
    branch_oid = ref_repo.get_branch(name)
    if branch_oid is None:
        raise BranchNotFoundError(name)

    if ref_repo.get_current_branch() == name:
        raise BranchkeepError(f"Cannot delete the current branch '{name}'")

    ref_repo.delete_ref(f"{BRANCH_PREFIX}{name}", f"branch: deleted {name}")
    return branch_oid
