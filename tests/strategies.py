"""Hypothesis strategies for branchkeep reference stores.

Provides commit ids, reference names outside the reserved namespace,
and whole in-memory store layouts paired with a visible set.
"""

from hypothesis import strategies as st

from tests.fakes import InMemoryReferenceStore

# Short hex ids keep failing examples readable
oids = st.text(alphabet="0123456789abcdef", min_size=2, max_size=12)

# Names that never fall in refs/branchless/<hex>
user_ref_names = st.builds(
    lambda kind, leaf: f"refs/{kind}/{leaf}",
    st.sampled_from(["heads", "tags", "notes", "remotes/origin"]),
    st.text(alphabet="abcdefghijklmnopqrstuvwxyz-", min_size=1, max_size=10).filter(
        lambda s: not s.startswith("-")
    ),
)


@st.composite
def store_layouts(draw):
    """Draw ``(store, visible)``.

    The store holds pinned commits, user refs to commits, and refs to
    blobs. ``visible`` is an arbitrary subset of the commits plus some
    ids that are not in the store at all.
    """
    store = InMemoryReferenceStore()
    commits = draw(st.lists(oids, min_size=0, max_size=12, unique=True))
    for oid in commits:
        store.add_commit(oid)

    pinned = draw(st.lists(st.sampled_from(commits), unique=True)) if commits else []
    for oid in pinned:
        store.put_ref(f"refs/branchless/{oid}", oid)

    if commits:
        for name in draw(st.lists(user_ref_names, max_size=6, unique=True)):
            store.put_ref(name, draw(st.sampled_from(commits)))

    blob = "b" * 40
    if draw(st.booleans()):
        store.add_blob(blob)
        store.put_ref("refs/notes/blob", blob)

    visible = set(draw(st.lists(st.sampled_from(commits), unique=True))) if commits else set()
    visible |= set(draw(st.lists(oids, max_size=3)))
    return store, visible
