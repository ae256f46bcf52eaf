"""Reference naming rules.

Pure functions over reference names: git-style validity checks, the
reserved GC namespace predicate, and construction of GC reference names.
No storage access happens here.
"""

from __future__ import annotations

import re

HEAD_REF = "HEAD"
BRANCH_PREFIX = "refs/heads/"
TAG_PREFIX = "refs/tags/"
DEFAULT_GC_REF_PREFIX = "refs/branchless"

# Characters forbidden anywhere in a reference name (git check-ref-format)
_BAD_REF_CHARS = frozenset("\177 ~^:?*[\\")

_OID_RE = re.compile(r"^[0-9a-f]+$")


def check_reference_name(name: str) -> str | None:
    """Check a reference name against git-style naming rules.

    Returns:
        None if the name is valid, otherwise a short reason string.
    """
    if not name:
        return "name cannot be empty"
    if name == HEAD_REF:
        return None
    if "/" not in name:
        return "name must contain at least one '/'"
    if name.startswith(".") or "/." in name:
        return "path components cannot start with '.'"
    if ".." in name:
        return "name cannot contain '..'"
    if "@{" in name:
        return "name cannot contain '@{'"
    if name == "@":
        return "name cannot be '@'"
    for ch in name:
        if ord(ch) < 0o40 or ch in _BAD_REF_CHARS:
            return f"name contains forbidden character {ch!r}"
    if name.startswith("/") or name.endswith("/") or "//" in name:
        return "name has invalid slash usage"
    if name.endswith("."):
        return "name cannot end with '.'"
    if name.endswith(".lock") or ".lock/" in name:
        return "path components cannot end with '.lock'"
    return None


def is_valid_reference_name(name: str) -> bool:
    """Return True if *name* satisfies the store's naming rules."""
    return check_reference_name(name) is None


def _normalize_prefix(prefix: str) -> str:
    return prefix.rstrip("/") + "/"


def gc_ref_name(commit_oid: str, prefix: str = DEFAULT_GC_REF_PREFIX) -> str:
    """Build the reserved reference name that keeps *commit_oid* alive.

    One name per commit, so pinning the same commit twice targets the
    same reference.
    """
    return f"{_normalize_prefix(prefix)}{commit_oid}"


def is_gc_ref(ref_name: str, prefix: str = DEFAULT_GC_REF_PREFIX) -> bool:
    """Return True if *ref_name* lies in the reserved GC namespace.

    A reserved name is ``<prefix>/<hex oid>`` with nothing after the oid.
    Names under the prefix that do not end in a single hex component
    (``refs/branchless/foo``, ``refs/branchless/a/b``) are not reserved.
    """
    norm = _normalize_prefix(prefix)
    if not ref_name.startswith(norm):
        return False
    return _OID_RE.match(ref_name[len(norm):]) is not None


def oid_from_gc_ref(ref_name: str, prefix: str = DEFAULT_GC_REF_PREFIX) -> str | None:
    """Extract the oid encoded in a reserved reference name, or None."""
    if not is_gc_ref(ref_name, prefix):
        return None
    return ref_name[len(_normalize_prefix(prefix)):]
