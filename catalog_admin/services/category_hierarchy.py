"""
Category hierarchy resolution.

Categories form a self-referential tree through ``parent_id``. The tree is
held as an arena of nodes addressed by id; resolution walks parent links and
the flattened view is a depth-first, name-sorted pre-order listing.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple, Any


def _key(value) -> Optional[str]:
    # ids arrive as ints from the store and as strings from requests
    if value is None or value == '':
        return None
    return str(value)


@dataclass
class CategoryNode:
    id: str
    name: str
    parent_id: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> 'CategoryNode':
        return cls(id=_key(row['id']), name=row.get('name') or '', parent_id=_key(row.get('parent_id')))

    def to_dict(self, level: Optional[int] = None) -> Dict[str, Any]:
        data = {'id': self.id, 'name': self.name, 'parent_id': self.parent_id}
        if level is not None:
            data['level'] = level
        return data


@dataclass
class CategoryHierarchy:
    """Root-to-leaf path of a category."""
    category: CategoryNode
    path: List[CategoryNode] = field(default_factory=list)

    @property
    def depth(self) -> int:
        return len(self.path) - 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.category.id,
            'name': self.category.name,
            'parent_id': self.category.parent_id,
            'level': self.depth,
            'depth': self.depth,
            'path': [node.to_dict(level=index) for index, node in enumerate(self.path)],
        }


def name_key(node: CategoryNode) -> Tuple[str, str]:
    return node.name.casefold(), node.name


class CategoryTree:
    """Arena of category nodes keyed by id."""

    def __init__(self, categories: Iterable[Any]):
        self.nodes: Dict[str, CategoryNode] = {}
        for category in categories:
            node = category if isinstance(category, CategoryNode) else CategoryNode.from_row(category)
            self.nodes[node.id] = node

    def __contains__(self, category_id) -> bool:
        return _key(category_id) in self.nodes

    def __len__(self) -> int:
        return len(self.nodes)

    def get(self, category_id) -> Optional[CategoryNode]:
        return self.nodes.get(_key(category_id))

    def roots(self) -> List[CategoryNode]:
        return sorted((n for n in self.nodes.values() if not n.parent_id), key=name_key)

    def children(self, parent_id) -> List[CategoryNode]:
        return sorted((n for n in self.nodes.values() if n.parent_id == _key(parent_id)), key=name_key)

    def resolve(self, category_id) -> Optional[CategoryHierarchy]:
        """
        Walk parent links from ``category_id`` up to its root.

        A parent missing from the arena ends the walk. So does a node already
        on the path, which only happens when stored data contains a cycle.

        Returns:
            The hierarchy, or None when ``category_id`` is unknown
        """
        start = self.nodes.get(_key(category_id))
        if start is None:
            return None

        path: List[CategoryNode] = []
        seen = set()
        current = start
        while current is not None and current.id not in seen:
            seen.add(current.id)
            path.insert(0, current)
            if not current.parent_id:
                break
            current = self.nodes.get(current.parent_id)

        return CategoryHierarchy(category=start, path=path)

    def ancestors(self, category_id) -> List[str]:
        """Ids from ``category_id`` upward, stopping at a root, a gap or a repeat."""
        chain = []
        current = self.nodes.get(_key(category_id))
        while current is not None and current.id not in chain:
            chain.append(current.id)
            current = self.nodes.get(current.parent_id) if current.parent_id else None
        return chain

    def would_create_cycle(self, category_id, parent_id) -> bool:
        """True when making ``parent_id`` the parent of ``category_id`` closes a loop."""
        category_id, parent_id = _key(category_id), _key(parent_id)
        if not parent_id:
            return False
        if parent_id == category_id:
            return True
        return category_id in self.ancestors(parent_id)

    def flatten(self) -> List[Tuple[CategoryNode, int]]:
        """Depth-first pre-order listing of the forest with depth levels."""
        result: List[Tuple[CategoryNode, int]] = []
        visited = set()

        def add_subtree(node: CategoryNode, level: int):
            if node.id in visited:
                return
            visited.add(node.id)
            result.append((node, level))
            for child in self.children(node.id):
                add_subtree(child, level + 1)

        for root in self.roots():
            add_subtree(root, 0)
        return result

    def search(self, query: str) -> List[CategoryNode]:
        """Flat, case-insensitive name search"""
        needle = query.strip().casefold()
        if not needle:
            return []
        return [n for n in self.nodes.values() if needle in n.name.casefold()]
