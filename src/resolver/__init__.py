"""NewGet resolver package.

Builds the dependency graph for a package, prunes it to one version per
package id and projects the result onto download URLs.
"""

from .assemble import assemble
from .graph import GraphBuilder, select_dependency_group
from .installer import PackageInstaller, install_package
from .prune import bootstrap_exclusions, compute_removals, prune

__all__ = [
    "assemble",
    "GraphBuilder",
    "select_dependency_group",
    "PackageInstaller",
    "install_package",
    "bootstrap_exclusions",
    "compute_removals",
    "prune",
]
