"""Tests for pruning a multi-version graph to one version per id."""

import pytest

from common.errors import GraphInvariantError
from constants import Constants
from resolver.assemble import assemble
from resolver.prune import bootstrap_exclusions, compute_removals, prune

from fakes import content_url, ident, make_graph


def _ids(identities):
    return [(i.id, str(i.version)) for i in identities]


class TestComputeRemovals:
    """Removal-set computation."""

    def test_keeps_only_highest_per_id(self):
        """All but the highest version of a duplicated id are removed."""
        available = [ident("C", "1.0.0"), ident("c", "2.0.0"), ident("C", "1.5.0"), ident("D", "1.0.0")]

        removals = compute_removals(available)

        assert removals == {ident("C", "1.0.0"), ident("C", "1.5.0")}

    def test_prerelease_is_lower_than_release(self):
        """Version precedence decides, not string order."""
        removals = compute_removals([ident("C", "2.0.0-beta"), ident("C", "2.0.0"), ident("C", "10.0.0")])
        assert removals == {ident("C", "2.0.0-beta"), ident("C", "2.0.0")}

    def test_exclusions_always_added(self):
        """Exclusions are removed even when they are the only version."""
        excluded = ident("NETStandard.Library", "1.6.1")
        assert compute_removals([excluded], [excluded]) == {excluded}

    def test_default_bootstrap_exclusion(self):
        """The default exclusion is NETStandard.Library 1.6.1."""
        assert bootstrap_exclusions() == {ident("netstandard.library", "1.6.1")}
        assert bootstrap_exclusions([]) == set()

    def test_exclusions_follow_configuration(self, monkeypatch):
        """Configured exclusions replace the default."""
        monkeypatch.setattr(Constants, "BOOTSTRAP_EXCLUSIONS", [("Foo", "1.0")])
        assert bootstrap_exclusions() == {ident("Foo", "1.0.0")}


class TestPrune:
    """Reachability walk."""

    def test_single_package(self):
        """A lone root survives."""
        graph = make_graph({("P", "1.0.0"): []})
        assert _ids(prune(ident("P", "1.0.0"), graph)) == [("P", "1.0.0")]

    def test_dependencies_before_dependents(self):
        """Post-order: children are added before their parent."""
        graph = make_graph({
            ("P", "1.0.0"): [("Q", "1.0.0"), ("R", "1.0.0")],
            ("Q", "1.0.0"): [("S", "1.0.0")],
            ("R", "1.0.0"): [],
            ("S", "1.0.0"): [],
        })

        result = prune(ident("P", "1.0.0"), graph)

        assert _ids(result) == [("S", "1.0.0"), ("Q", "1.0.0"), ("R", "1.0.0"), ("P", "1.0.0")]

    def test_diamond_keeps_highest(self):
        """A and B pull C 1.0 and C 2.0; only C 2.0 survives."""
        graph = make_graph({
            ("Root", "1.0.0"): [("A", "1.0.0"), ("B", "1.0.0")],
            ("A", "1.0.0"): [("C", "1.0.0")],
            ("B", "1.0.0"): [("C", "2.0.0")],
            ("C", "1.0.0"): [],
            ("C", "2.0.0"): [],
        })

        result = prune(ident("Root", "1.0.0"), graph)

        assert _ids(result) == [("A", "1.0.0"), ("C", "2.0.0"), ("B", "1.0.0"), ("Root", "1.0.0")]
        assert ident("C", "1.0.0") not in result

    def test_orphan_under_removed_node_is_dropped(self):
        """Y reachable only through superseded X 1.0 is dropped with it."""
        graph = make_graph({
            ("Root", "1.0.0"): [("X", "1.0.0"), ("Z", "1.0.0")],
            ("X", "1.0.0"): [("Y", "1.0.0")],
            ("Z", "1.0.0"): [("X", "2.0.0")],
            ("X", "2.0.0"): [],
            ("Y", "1.0.0"): [],
        })

        result = prune(ident("Root", "1.0.0"), graph)

        assert ident("Y", "1.0.0") not in result
        assert _ids(result) == [("X", "2.0.0"), ("Z", "1.0.0"), ("Root", "1.0.0")]

    def test_bootstrap_package_never_included(self):
        """The excluded bootstrap package is dropped even as the only version."""
        graph = make_graph({
            ("LitJson", "0.11.0"): [("NETStandard.Library", "1.6.1")],
            ("NETStandard.Library", "1.6.1"): [("System.Runtime", "4.3.0")],
            ("System.Runtime", "4.3.0"): [],
        })

        result = prune(ident("LitJson", "0.11.0"), graph)

        assert _ids(result) == [("LitJson", "0.11.0")]

    def test_other_bootstrap_versions_kept(self):
        """Only the exact excluded version is dropped."""
        graph = make_graph({
            ("P", "1.0.0"): [("NETStandard.Library", "2.0.0")],
            ("NETStandard.Library", "2.0.0"): [],
        })

        result = prune(ident("P", "1.0.0"), graph)

        assert ident("NETStandard.Library", "2.0.0") in result

    def test_excluded_root(self):
        """A root matching the exclusion is itself left out."""
        graph = make_graph({("NETStandard.Library", "1.6.1"): []})
        assert prune(ident("NETStandard.Library", "1.6.1"), graph) == []

    def test_at_most_one_version_per_id(self):
        """No id appears twice in the result."""
        graph = make_graph({
            ("Root", "1.0.0"): [("A", "1.0.0"), ("B", "1.0.0"), ("C", "3.0.0")],
            ("A", "1.0.0"): [("C", "1.0.0"), ("D", "1.0.0")],
            ("B", "1.0.0"): [("D", "2.0.0"), ("C", "2.0.0")],
            ("C", "1.0.0"): [],
            ("C", "2.0.0"): [],
            ("C", "3.0.0"): [],
            ("D", "1.0.0"): [],
            ("D", "2.0.0"): [],
        })

        result = prune(ident("Root", "1.0.0"), graph)

        keys = [i.key for i in result]
        assert len(keys) == len(set(keys))
        assert ident("C", "3.0.0") in result and ident("D", "2.0.0") in result

    def test_idempotent(self):
        """Pruning the same graph twice gives the same answer."""
        graph = make_graph({
            ("Root", "1.0.0"): [("A", "1.0.0"), ("A", "2.0.0")],
            ("A", "1.0.0"): [],
            ("A", "2.0.0"): [],
        })
        root = ident("Root", "1.0.0")
        assert prune(root, graph) == prune(root, graph)

    def test_cycle_in_graph(self):
        """A cycle does not recurse forever."""
        graph = make_graph({
            ("A", "1.0.0"): [("B", "1.0.0")],
            ("B", "1.0.0"): [("A", "1.0.0")],
        })
        assert _ids(prune(ident("A", "1.0.0"), graph)) == [("B", "1.0.0"), ("A", "1.0.0")]

    def test_edge_to_absent_identity_ignored(self):
        """Edges into identities that were never resolved are not followed."""
        graph = make_graph({("P", "1.0.0"): [("Ghost", "1.0.0")]})
        assert _ids(prune(ident("P", "1.0.0"), graph)) == [("P", "1.0.0")]

    def test_root_must_be_resolved(self):
        """Pruning an unknown root is an invariant violation."""
        graph = make_graph({("P", "1.0.0"): []})
        with pytest.raises(GraphInvariantError):
            prune(ident("Q", "1.0.0"), graph)

    def test_custom_exclusions(self):
        """Explicit exclusions override the configured ones."""
        graph = make_graph({
            ("P", "1.0.0"): [("NETStandard.Library", "1.6.1"), ("Q", "1.0.0")],
            ("NETStandard.Library", "1.6.1"): [],
            ("Q", "1.0.0"): [],
        })

        result = prune(ident("P", "1.0.0"), graph, exclusions=[ident("Q", "1.0.0")])

        assert _ids(result) == [("NETStandard.Library", "1.6.1"), ("P", "1.0.0")]


class TestAssemble:
    """Projection to content URLs."""

    def test_urls_in_pruned_order(self):
        """One URL per identity, in the pruned order."""
        graph = make_graph({
            ("P", "1.0.0"): [("Q", "1.0.0")],
            ("Q", "1.0.0"): [],
        })
        result = prune(ident("P", "1.0.0"), graph)

        assert assemble(result, graph) == [content_url("Q", "1.0.0"), content_url("P", "1.0.0")]

    def test_empty(self):
        """Nothing pruned, nothing to download."""
        graph = make_graph({("P", "1.0.0"): []})
        assert assemble([], graph) == []
