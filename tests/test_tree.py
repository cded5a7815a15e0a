"""
Tests for the tree arena: sibling relinking, insertion policy and ownership.
"""

import pytest

from shortcircuit.model.tree import NodeKind, Tree


def assert_links_consistent(tree, parent_id):
    """Sibling links and the parent's end pointers must agree."""
    children = list(tree.children(parent_id))
    parent = tree.node(parent_id)
    if not children:
        assert parent.first_child is None
        assert parent.last_child is None
        return
    assert parent.first_child == children[0]
    assert parent.last_child == children[-1]
    for i, child_id in enumerate(children):
        child = tree.node(child_id)
        assert child.parent == parent_id
        assert child.prev_sibling == (children[i - 1] if i > 0 else None)
        assert child.next_sibling == (children[i + 1] if i + 1 < len(children) else None)


def tags(tree, parent_id):
    return [tree.node(c).tag for c in tree.children(parent_id)]


@pytest.fixture
def tree_abc():
    tree = Tree()
    parent = tree.create(NodeKind.ELEMENT, tag="ul")
    for tag in ("a", "b", "c"):
        tree.append_child(parent, tree.create(NodeKind.ELEMENT, tag=tag))
    return tree, parent


class TestInsertChild:
    """Insertion index policy"""

    def test_insert_into_empty_parent(self):
        tree = Tree()
        parent = tree.create(NodeKind.ELEMENT, tag="div")
        child = tree.create(NodeKind.TEXT, data="only")
        tree.insert_child(parent, child, 5)
        assert list(tree.children(parent)) == [child]
        assert_links_consistent(tree, parent)

    @pytest.mark.parametrize("index", [0, -1, -100])
    def test_non_positive_index_prepends(self, tree_abc, index):
        tree, parent = tree_abc
        tree.insert_child(parent, tree.create(NodeKind.ELEMENT, tag="x"), index)
        assert tags(tree, parent) == ["x", "a", "b", "c"]
        assert_links_consistent(tree, parent)

    @pytest.mark.parametrize("index", [3, 4, 1000])
    def test_large_index_appends(self, tree_abc, index):
        tree, parent = tree_abc
        tree.insert_child(parent, tree.create(NodeKind.ELEMENT, tag="x"), index)
        assert tags(tree, parent) == ["a", "b", "c", "x"]
        assert_links_consistent(tree, parent)

    def test_middle_index_inserts_before_current_child(self, tree_abc):
        tree, parent = tree_abc
        tree.insert_child(parent, tree.create(NodeKind.ELEMENT, tag="x"), 2)
        assert tags(tree, parent) == ["a", "b", "x", "c"]
        assert_links_consistent(tree, parent)

    def test_attached_node_is_moved_not_shared(self, tree_abc):
        tree, parent = tree_abc
        other = tree.create(NodeKind.ELEMENT, tag="ol")
        b = tree.child_at(parent, 1)
        tree.insert_child(other, b, 0)
        assert tags(tree, parent) == ["a", "c"]
        assert list(tree.children(other)) == [b]
        assert tree.node(b).parent == other
        assert_links_consistent(tree, parent)
        assert_links_consistent(tree, other)

    def test_inserting_into_own_subtree_is_rejected(self, tree_abc):
        tree, parent = tree_abc
        a = tree.child_at(parent, 0)
        with pytest.raises(ValueError):
            tree.insert_child(a, parent, 0)
        with pytest.raises(ValueError):
            tree.insert_child(parent, parent, 0)
        assert tags(tree, parent) == ["a", "b", "c"]


class TestRemoveChild:
    """Removal relinks neighbours and fully detaches the removed node"""

    def test_remove_middle(self, tree_abc):
        tree, parent = tree_abc
        a, b, c = tree.children(parent)
        assert tree.remove_child(parent, 1) == b
        assert tree.node(a).next_sibling == c
        assert tree.node(c).prev_sibling == a
        removed = tree.node(b)
        assert (removed.parent, removed.prev_sibling, removed.next_sibling) == (None, None, None)
        assert_links_consistent(tree, parent)

    def test_remove_first_and_last(self, tree_abc):
        tree, parent = tree_abc
        tree.remove_child(parent, 0)
        assert tags(tree, parent) == ["b", "c"]
        tree.remove_child(parent, 1)
        assert tags(tree, parent) == ["b"]
        assert_links_consistent(tree, parent)
        tree.remove_child(parent, 0)
        assert tags(tree, parent) == []
        assert_links_consistent(tree, parent)

    @pytest.mark.parametrize("index", [3, 10, -1])
    def test_out_of_range_is_a_noop(self, tree_abc, index):
        tree, parent = tree_abc
        before = tree.structure(parent)
        assert tree.remove_child(parent, index) is None
        assert tree.structure(parent) == before

    def test_removed_node_becomes_its_own_local_root(self, tree_abc):
        tree, parent = tree_abc
        b = tree.remove_child(parent, 1)
        assert tree.local_root(b) == b


class TestAttributes:

    def test_set_overwrites_in_place(self):
        tree = Tree()
        node = tree.create(NodeKind.ELEMENT, tag="div", attrs=[("id", "x"), ("class", "a")])
        tree.set_attr(node, "id", "y")
        assert tree.node(node).attrs == [("id", "y"), ("class", "a")]

    def test_set_appends_new_key(self):
        tree = Tree()
        node = tree.create(NodeKind.ELEMENT, tag="div", attrs=[("id", "x")])
        tree.set_attr(node, "title", "t")
        assert tree.node(node).attrs == [("id", "x"), ("title", "t")]

    def test_remove_first_match_only(self):
        tree = Tree()
        node = tree.create(NodeKind.ELEMENT, tag="div", attrs=[("k", "1"), ("j", "2"), ("k", "3")])
        assert tree.remove_attr(node, "k") is True
        assert tree.node(node).attrs == [("j", "2"), ("k", "3")]
        assert tree.remove_attr(node, "missing") is False


class TestArena:

    def test_release_frees_detached_subtree(self, tree_abc):
        tree, parent = tree_abc
        b = tree.child_at(parent, 1)
        tree.append_child(b, tree.create(NodeKind.TEXT, data="x"))
        size = len(tree)
        tree.remove_child(parent, 1)
        assert tree.release(b) == 2
        assert len(tree) == size - 2
        assert b not in tree

    def test_release_attached_node_is_rejected(self, tree_abc):
        tree, parent = tree_abc
        with pytest.raises(ValueError):
            tree.release(tree.child_at(parent, 0))

    def test_unknown_id(self):
        with pytest.raises(KeyError):
            Tree().node(42)

    def test_copy_subtree_between_trees(self, tree_abc):
        source, parent = tree_abc
        target = Tree()
        copy = target.copy_subtree(source, parent)
        assert target.structure(copy) == source.structure(parent)
        assert target.node(copy).parent is None
        assert_links_consistent(target, copy)

    def test_text_concatenates_descendants(self):
        tree = Tree()
        p = tree.create(NodeKind.ELEMENT, tag="p")
        tree.append_child(p, tree.create(NodeKind.TEXT, data="Hello "))
        b = tree.create(NodeKind.ELEMENT, tag="b")
        tree.append_child(b, tree.create(NodeKind.TEXT, data="World"))
        tree.append_child(p, b)
        tree.append_child(p, tree.create(NodeKind.COMMENT, data="ignored"))
        assert tree.text(p) == "Hello World"
