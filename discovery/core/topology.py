"""
Diffusion Topology
==================

Structural view of reconstructed networks using graph topology.

Each kept network contributes its nodes (event titles) as a clique; the
connected component a network falls into tells how far its diffusion
cluster reaches across all kept networks.

ALLOWED:
- Connected components (cluster size)
- Structural metrics (density, component count)

FORBIDDEN:
- Centrality measures; a node's rank is not a discovery
"""

from __future__ import annotations
from typing import Any, Dict, Iterable, Sequence, Set
from dataclasses import dataclass
from itertools import combinations
import networkx as nx


@dataclass(frozen=True)
class GraphMetrics:
    """Immutable structural metrics for the diffusion graph."""
    node_count: int
    edge_count: int
    density: float
    connected_components_count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nodes": self.node_count,
            "edges": self.edge_count,
            "density": round(self.density, 4),
            "components": self.connected_components_count,
        }


class DiffusionGraph:
    """Undirected graph of network members (event titles)."""

    def __init__(self):
        self._graph = nx.Graph()

    def add_network(self, nodes: Sequence[str], network_type: str = "") -> None:
        """Add one network's members, fully linked."""
        members = [n for n in dict.fromkeys(nodes) if n]
        for node in members:
            self._graph.add_node(node)
        for a, b in combinations(members, 2):
            self._graph.add_edge(a, b, network_type=network_type)

    @staticmethod
    def build(networks: Iterable[Sequence[str]]) -> DiffusionGraph:
        graph = DiffusionGraph()
        for nodes in networks:
            graph.add_network(nodes)
        return graph

    def cluster_size(self, nodes: Sequence[str]) -> int:
        """
        Size of the union of components touched by nodes.

        0 when none of the nodes is in the graph.
        """
        cluster: Set[str] = set()
        for node in nodes:
            if node in self._graph and node not in cluster:
                cluster |= nx.node_connected_component(self._graph, node)
        return len(cluster)

    def compute_metrics(self) -> GraphMetrics:
        if not self._graph:
            return GraphMetrics(0, 0, 0.0, 0)

        return GraphMetrics(
            node_count=self._graph.number_of_nodes(),
            edge_count=self._graph.number_of_edges(),
            density=nx.density(self._graph),
            connected_components_count=nx.number_connected_components(self._graph),
        )
