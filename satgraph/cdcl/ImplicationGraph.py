from typing import Dict, Hashable, Iterable, List, NamedTuple, Optional, Tuple

from .Formula import Literal
from .errors import InvariantViolation

# Key of the synthetic conflict vertex. Variable vertices are keyed by their symbol.
CONFLICT = None


class Vertex:
    """
    One vertex of the implication graph.

    Attributes:
        literal: literal made true by the assignment (None for the conflict vertex)
        level: decision level of the assignment (or of the conflict)
        is_decision: True if the literal was chosen by a decision
        clause: index of the forcing clause, or of the falsified clause for the conflict vertex
    """
    __slots__ = ['literal', 'level', 'is_decision', 'clause']

    def __init__(self, literal, level, is_decision=False, clause=None):
        self.literal = literal
        self.level = level
        self.is_decision = is_decision
        self.clause = clause

    @property
    def key(self):
        return CONFLICT if self.literal is None else self.literal.symbol

    @property
    def is_conflict(self):
        return self.literal is None

    def __str__(self):
        if self.is_conflict:
            return f"κ@{self.level}"
        return f"{self.literal}@{self.level}"


class VertexView(NamedTuple):
    """Read-only copy of a vertex handed out in snapshots"""
    symbol: Optional[Hashable]
    sign: Optional[bool]
    level: int
    is_decision: bool
    is_conflict: bool

    @property
    def label(self):
        if self.is_conflict:
            return f"κ@{self.level}"
        return f"{Literal(self.symbol, self.sign)}@{self.level}"


class GraphSnapshot(NamedTuple):
    vertices: Tuple[VertexView, ...]
    edges: Tuple[Tuple[Optional[Hashable], Optional[Hashable]], ...]

    def vertex(self, symbol) -> Optional[VertexView]:
        for view in self.vertices:
            if view.symbol == symbol:
                return view
        return None


class ImplicationGraph:
    """
    Implication graph derived from the trail.

    Vertices live in a mapping keyed by variable symbol, so there can never be
    two live vertices for one variable. Adjacency is kept in both directions as
    ordered lists keyed by the same symbols.
    """

    def __init__(self):
        self._vertices: Dict[Hashable, Vertex] = {}
        self._successors: Dict[Hashable, List[Hashable]] = {}
        self._predecessors: Dict[Hashable, List[Hashable]] = {}

    def add_vertex(self, literal: Literal, level: int, is_decision: bool = False,
                   clause: Optional[int] = None) -> Vertex:
        if literal.symbol in self._vertices:
            raise InvariantViolation(f"Variable {literal.symbol} already has vertex {self._vertices[literal.symbol]}")
        return self._insert(Vertex(literal, level, is_decision, clause))

    def add_conflict(self, level: int, clause: int, sources: Iterable[Hashable]) -> Vertex:
        '''Add the conflict vertex with an edge from every vertex in `sources`.'''
        if CONFLICT in self._vertices:
            raise InvariantViolation("The graph already holds a conflict vertex")
        vertex = self._insert(Vertex(None, level, False, clause))
        for source in sources:
            self.add_edge(source, CONFLICT)
        return vertex

    def _insert(self, vertex: Vertex) -> Vertex:
        self._vertices[vertex.key] = vertex
        self._successors[vertex.key] = []
        self._predecessors[vertex.key] = []
        return vertex

    def add_edge(self, source: Hashable, target: Hashable):
        if source not in self._vertices or target not in self._vertices:
            raise InvariantViolation(f"Edge {source} -> {target} references a missing vertex")
        if target not in self._successors[source]:
            self._successors[source].append(target)
            self._predecessors[target].append(source)

    def remove_above(self, level: int) -> List[Vertex]:
        '''
        Drop every vertex with a level strictly greater than `level`, together
        with the conflict vertex and all edges touching removed vertices.

        Return:
            the removed vertices
        '''
        doomed = [key for key, vertex in self._vertices.items()
                  if vertex.level > level or vertex.is_conflict]
        removed = []
        for key in doomed:
            for source in self._predecessors[key]:
                if source in self._successors:
                    self._successors[source].remove(key)
            for target in self._successors[key]:
                if target in self._predecessors:
                    self._predecessors[target].remove(key)
            del self._successors[key]
            del self._predecessors[key]
            removed.append(self._vertices.pop(key))
        return removed

    def vertex(self, key: Hashable) -> Vertex:
        return self._vertices[key]

    def predecessors(self, key: Hashable) -> List[Hashable]:
        return list(self._predecessors[key])

    def successors(self, key: Hashable) -> List[Hashable]:
        return list(self._successors[key])

    @property
    def conflict(self) -> Optional[Vertex]:
        return self._vertices.get(CONFLICT)

    def decision_vertex(self, level: int) -> Optional[Vertex]:
        for vertex in self._vertices.values():
            if vertex.is_decision and vertex.level == level:
                return vertex
        return None

    def symbols(self) -> List[Hashable]:
        """Keys of all variable vertices (the conflict vertex excluded)"""
        return [key for key in self._vertices if key is not CONFLICT]

    def vertices(self) -> List[Vertex]:
        return list(self._vertices.values())

    def edges(self) -> List[Tuple[Hashable, Hashable]]:
        return [(source, target) for source, targets in self._successors.items() for target in targets]

    def snapshot(self) -> GraphSnapshot:
        views = tuple(
            VertexView(
                None if vertex.is_conflict else vertex.literal.symbol,
                None if vertex.is_conflict else vertex.literal.sign,
                vertex.level,
                vertex.is_decision,
                vertex.is_conflict,
            )
            for vertex in self._vertices.values()
        )
        return GraphSnapshot(views, tuple(self.edges()))

    def __contains__(self, key):
        return key in self._vertices

    def __len__(self):
        return len(self._vertices)
