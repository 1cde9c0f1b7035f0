"""Tests for the concurrent dependency-graph builder."""

import asyncio
import logging

import pytest

from common.errors import RegistrationUnavailable, VersionNotFound
from registry.nuget.models import DependencyGroup, PackageDependency
from resolver.graph import GraphBuilder, dependency_identity, select_dependency_group
from versioning.frameworks import ANY_FRAMEWORK, Framework
from versioning.models import DependencyGraph, PackageDependencyInfo
from versioning.nuget_version import VersionRange, parse_version

from fakes import BASE_URL, FakeRegistryClient, content_url, ident

NS16 = Framework.parse("netstandard1.6")


def _build(client, package_id, version, target=NS16):
    builder = GraphBuilder(client, BASE_URL, target)
    return asyncio.run(builder.build(package_id, parse_version(version)))


class TestBuild:
    """Graph construction."""

    def test_leaf_package(self):
        """A package without dependency groups is a single node."""
        client = FakeRegistryClient({("P", "1.0.0"): None})

        root, graph = _build(client, "P", "1.0.0")

        assert root == ident("P", "1.0.0")
        assert root.dependencies == []
        assert len(graph) == 1
        assert graph.content_url(root) == content_url("P", "1.0.0")

    def test_edges_use_range_minimum(self):
        """Edges point at each dependency's lower bound, in declaration order."""
        client = FakeRegistryClient({
            ("P", "1.0.0"): [("netstandard1.6", [("Q", "[1.0.0, )"), ("R", "[2.0.0, 3.0.0)")])],
            ("Q", "1.0.0"): None,
            ("R", "2.0.0"): None,
            ("R", "2.9.0"): None,
        })

        root, graph = _build(client, "P", "1.0.0")

        assert root.dependencies == [ident("Q", "1.0.0"), ident("R", "2.0.0")]
        assert set(graph) == {ident("P", "1.0.0"), ident("Q", "1.0.0"), ident("R", "2.0.0")}

    def test_nearest_group_selected(self):
        """Only the group nearest to the target framework is expanded."""
        client = FakeRegistryClient({
            ("P", "1.0.0"): [
                ("net45", [("OnlyNet", "1.0.0")]),
                ("netstandard1.3", [("Q", "1.0.0")]),
                ("netstandard2.0", [("Newer", "1.0.0")]),
            ],
            ("Q", "1.0.0"): None,
        })

        root, graph = _build(client, "P", "1.0.0")

        assert root.dependencies == [ident("Q", "1.0.0")]
        assert ("onlynet", "1.0.0") not in client.calls
        assert ("newer", "1.0.0") not in client.calls

    def test_incompatible_groups_make_a_leaf(self):
        """No compatible group is not an error: the package has no children."""
        client = FakeRegistryClient({("P", "1.0.0"): [("net47", [("Q", "1.0.0")])]})

        root, graph = _build(client, "P", "1.0.0")

        assert root.dependencies == []
        assert len(graph) == 1
        assert ("q", "1.0.0") not in client.calls

    def test_incompatible_groups_are_logged(self, caplog):
        """The incompatibility is reported at INFO with the package and target."""
        client = FakeRegistryClient({("P", "1.0.0"): [("net47", [("Q", "1.0.0")])]})

        with caplog.at_level(logging.INFO, logger="resolver.graph"):
            _build(client, "P", "1.0.0")

        records = [r for r in caplog.records if getattr(r, "event", None) == "platform_incompatible"]
        assert len(records) == 1
        assert "No dependency group of P 1.0.0 is compatible" in records[0].getMessage()

    def test_root_identity_from_catalog_entry(self):
        """The node carries the registry's id casing."""
        client = FakeRegistryClient({("Newtonsoft.Json", "13.0.1"): None})

        root, graph = _build(client, "newtonsoft.json", "13.0.1")

        assert root.id == "Newtonsoft.Json"
        assert ident("NEWTONSOFT.JSON", "13.0.1") in graph

    def test_multiple_versions_of_same_id(self):
        """Different versions of one id reached via different paths are all kept."""
        client = FakeRegistryClient({
            ("Root", "1.0.0"): [("", [("A", "1.0.0"), ("B", "1.0.0")])],
            ("A", "1.0.0"): [("", [("C", "1.0.0")])],
            ("B", "1.0.0"): [("", [("C", "2.0.0")])],
            ("C", "1.0.0"): None,
            ("C", "2.0.0"): None,
        })

        _, graph = _build(client, "Root", "1.0.0")

        assert ident("C", "1.0.0") in graph
        assert ident("C", "2.0.0") in graph
        assert len(graph) == 5


class TestMemoization:
    """At-most-once fetch per identity."""

    def test_diamond_fetches_shared_dependency_once(self):
        """Two parents of the same identity trigger a single lookup."""
        client = FakeRegistryClient({
            ("Root", "1.0.0"): [("", [("A", "1.0.0"), ("B", "1.0.0")])],
            ("A", "1.0.0"): [("", [("C", "1.0.0")])],
            ("B", "1.0.0"): [("", [("c", "1.0")])],
            ("C", "1.0.0"): None,
        })

        _, graph = _build(client, "Root", "1.0.0")

        assert client.calls[("c", "1.0.0")] == 1
        assert len(graph) == 4

    def test_sibling_edges_to_same_identity(self):
        """Duplicate sibling edges are both recorded but fetched once."""
        client = FakeRegistryClient({
            ("Root", "1.0.0"): [("", [("C", "1.0.0"), ("C", "[1.0.0, 2.0.0)")])],
            ("C", "1.0.0"): None,
        })

        root, _ = _build(client, "Root", "1.0.0")

        assert root.dependencies == [ident("C", "1.0.0"), ident("C", "1.0.0")]
        assert client.calls[("c", "1.0.0")] == 1

    def test_cycle_terminates(self):
        """Re-entering a claimed identity returns without expanding it again."""
        client = FakeRegistryClient({
            ("A", "1.0.0"): [("", [("B", "1.0.0")])],
            ("B", "1.0.0"): [("", [("A", "1.0.0")])],
        })

        root, graph = _build(client, "A", "1.0.0")

        assert set(graph) == {ident("A", "1.0.0"), ident("B", "1.0.0")}
        assert client.calls[("a", "1.0.0")] == 1
        assert graph.info(ident("B", "1.0.0")).dependencies == [root]

    def test_prepopulated_identity_is_not_refetched(self):
        """An identity already in the graph is skipped entirely."""
        client = FakeRegistryClient({("Root", "1.0.0"): [("", [("C", "1.0.0")])]})
        graph = DependencyGraph()
        graph.try_add(PackageDependencyInfo("C", parse_version("1.0.0")), "preexisting")

        builder = GraphBuilder(client, BASE_URL, NS16)
        asyncio.run(builder.build("Root", parse_version("1.0.0"), graph))

        assert ("c", "1.0.0") not in client.calls
        assert graph.content_url(ident("C", "1.0.0")) == "preexisting"


class TestFailures:
    """Fail-fast error propagation."""

    def test_missing_root_version(self):
        """An absent root version raises VersionNotFound."""
        client = FakeRegistryClient({("P", "1.0.0"): None})
        with pytest.raises(VersionNotFound):
            _build(client, "P", "2.0.0")

    def test_unreachable_transitive_dependency_fails_everything(self):
        """One failed lookup deep in the graph aborts the whole build."""
        client = FakeRegistryClient({
            ("P", "1.0.0"): [("", [("Q", "1.0.0"), ("Ghost", "1.0.0")])],
            ("Q", "1.0.0"): None,
        })
        with pytest.raises(RegistrationUnavailable):
            _build(client, "P", "1.0.0")

    def test_first_failure_cancels_pending_siblings(self):
        """A failing sibling cancels the ones still in flight and their subtrees."""
        class _SlowSiblingClient(FakeRegistryClient):
            cancelled = False

            async def find_leaf(self, base_url, package_id, version):
                if package_id == "Slow":
                    try:
                        await asyncio.sleep(10)
                    except asyncio.CancelledError:
                        self.cancelled = True
                        raise
                return await super().find_leaf(base_url, package_id, version)

        client = _SlowSiblingClient({
            ("P", "1.0.0"): [("", [("Slow", "1.0.0"), ("Ghost", "1.0.0")])],
            ("Slow", "1.0.0"): [("", [("Child", "1.0.0")])],
            ("Child", "1.0.0"): None,
        })

        with pytest.raises(RegistrationUnavailable):
            _build(client, "P", "1.0.0")

        assert client.cancelled
        assert ("slow", "1.0.0") not in client.calls
        assert ("child", "1.0.0") not in client.calls

    def test_missing_transitive_version(self):
        """A dependency whose minimum version does not exist fails the build."""
        client = FakeRegistryClient({
            ("P", "1.0.0"): [("", [("Q", "[1.5.0, )")])],
            ("Q", "1.0.0"): None,
            ("Q", "2.0.0"): None,
        })
        with pytest.raises(VersionNotFound):
            _build(client, "P", "1.0.0")


class TestHelpers:
    """Group selection and edge construction."""

    def test_select_group_none_without_groups(self):
        """No groups means nothing to select."""
        assert select_dependency_group(None, NS16) is None
        assert select_dependency_group([], NS16) is None

    def test_select_any_group(self):
        """The any group applies when nothing more specific does."""
        group = DependencyGroup(ANY_FRAMEWORK, [])
        assert select_dependency_group([group], NS16) is group

    def test_dependency_without_lower_bound(self):
        """A range with no minimum cannot name an exact version."""
        dependency = PackageDependency("Q", VersionRange.parse("(, 2.0]"))
        with pytest.raises(VersionNotFound):
            dependency_identity(dependency)
