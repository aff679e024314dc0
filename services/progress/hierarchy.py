"""Trail → module → content hierarchy: assembly from flat rows and access gating.

The persistence layer returns modules and content items as flat rows carrying
their parent id. `build_trail` turns those rows into an ordered `Trail`;
`TrailTree` indexes a trail with parent links so access can be resolved
hierarchically. Malformed hierarchies are rejected here, at load time, so the
aggregation functions never meet them.
"""

from typing import Any, Dict, Iterable, List, Mapping, Tuple, Union

from pydantic import ValidationError

from packages.common.errors import ConfigurationError
from packages.schemas.content import ContentItem, Module, Trail

Node = Union[Trail, Module, ContentItem]


def _ordered(rows: List[Tuple[int, Mapping[str, Any]]]) -> List[Mapping[str, Any]]:
    # `order` is authoritative; arrival position only breaks ties.
    return [r for _, r in sorted(rows, key=lambda pr: (pr[1].get("order", 0), pr[0]))]


def build_trail(
    trail_row: Mapping[str, Any],
    module_rows: Iterable[Mapping[str, Any]],
    content_rows: Iterable[Mapping[str, Any]],
) -> Trail:
    """Assemble a `Trail` from flat rows.

    Args:
        trail_row: Trail fields (without modules).
        module_rows: Module fields, each with a `trail_id`.
        content_rows: Content item fields, each with a `module_id`.

    Returns:
        The trail with modules and content sorted by their `order` field.

    Raises:
        ConfigurationError: duplicate ids, a module of another trail, a
            content item whose module is not part of this trail, or a row
            missing its id or carrying invalid fields.
    """
    try:
        return _assemble(trail_row, module_rows, content_rows)
    except KeyError as e:
        raise ConfigurationError(f"trail row is missing field {e.args[0]!r}") from e
    except ValidationError as e:
        problems = "; ".join(f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors())
        raise ConfigurationError(f"invalid trail {trail_row.get('id', '?')!r}: {problems}") from e


def _assemble(
    trail_row: Mapping[str, Any],
    module_rows: Iterable[Mapping[str, Any]],
    content_rows: Iterable[Mapping[str, Any]],
) -> Trail:
    trail_id = trail_row["id"]
    modules: Dict[str, List[Tuple[int, Mapping[str, Any]]]] = {}
    module_list: List[Tuple[int, Mapping[str, Any]]] = []
    for pos, m in enumerate(module_rows):
        if m.get("trail_id", trail_id) != trail_id:
            raise ConfigurationError(f"module {m['id']!r} belongs to trail {m.get('trail_id')!r}, not {trail_id!r}")
        if m["id"] in modules:
            raise ConfigurationError(f"duplicate module id {m['id']!r} in trail {trail_id!r}")
        modules[m["id"]] = []
        module_list.append((pos, m))

    seen_content = set()
    for pos, c in enumerate(content_rows):
        parent = c.get("module_id")
        if parent not in modules:
            raise ConfigurationError(f"content {c['id']!r} references unknown module {parent!r}")
        if c["id"] in seen_content:
            raise ConfigurationError(f"content {c['id']!r} appears more than once in trail {trail_id!r}")
        seen_content.add(c["id"])
        modules[parent].append((pos, c))

    built = []
    for m in _ordered(module_list):
        content = [ContentItem.model_validate({k: v for k, v in c.items() if k != "module_id"})
                   for c in _ordered(modules[m["id"]])]
        fields = {k: v for k, v in m.items() if k not in ("trail_id", "content")}
        built.append(Module.model_validate({**fields, "content": content}))
    fields = {k: v for k, v in trail_row.items() if k != "modules"}
    return Trail.model_validate({**fields, "modules": built})


class TrailTree:
    """A validated trail with parent links for hierarchical access checks."""

    def __init__(self, trail: Trail) -> None:
        """Index `trail`; raises `ConfigurationError` on repeated ids."""
        self.trail = trail
        self._module_of: Dict[str, Module] = {}
        self._modules: Dict[str, Module] = {}
        for m in trail.modules:
            if m.id in self._modules:
                raise ConfigurationError(f"module {m.id!r} appears more than once in trail {trail.id!r}")
            self._modules[m.id] = m
            for c in m.content:
                if c.id in self._module_of:
                    raise ConfigurationError(f"content {c.id!r} is owned by more than one module in trail {trail.id!r}")
                self._module_of[c.id] = m

    def contents(self) -> List[ContentItem]:
        """All content items in trail order."""
        return [c for m in self.trail.modules for c in m.content]

    def find_content(self, content_id: str) -> ContentItem:
        """Return the content item with `content_id`, or raise `KeyError`."""
        module = self._module_of[content_id]
        return next(c for c in module.content if c.id == content_id)

    def module_of(self, content_id: str) -> Module:
        return self._module_of[content_id]

    def is_accessible(self, node: Node) -> bool:
        """True iff neither `node` nor any of its ancestors is blocked.

        Raises:
            ConfigurationError: `node` is not part of this trail.
        """
        if isinstance(node, Trail):
            if node.id != self.trail.id:
                raise ConfigurationError(f"trail {node.id!r} is not {self.trail.id!r}")
            return not self.trail.blocked
        if isinstance(node, Module):
            if node.id not in self._modules:
                raise ConfigurationError(f"module {node.id!r} is not part of trail {self.trail.id!r}")
            return not self.trail.blocked and not self._modules[node.id].blocked
        module = self._module_of.get(node.id)
        if module is None:
            raise ConfigurationError(f"content {node.id!r} is not part of trail {self.trail.id!r}")
        return not self.trail.blocked and not module.blocked and not self.find_content(node.id).blocked
