"""Minimal ``-filter_complex`` intermediate representation.

Render builders assemble :class:`FilterNode` chains first and format them
last, so tests can assert on graph structure (labels, order, filters)
without parsing strings.
"""

from dataclasses import dataclass, field


@dataclass
class FilterNode:
    """A linear chain of filters between labelled pads.

    Attributes:
        inputs: Input pad labels, e.g. ``["0:v"]`` or ``["voice", "music"]``
        filters: Filters applied in order
        outputs: Output pad labels
    """

    inputs: list[str]
    filters: list[str]
    outputs: list[str]

    def render(self) -> str:
        ins = "".join(f"[{label}]" for label in self.inputs)
        outs = "".join(f"[{label}]" for label in self.outputs)
        return f"{ins}{','.join(self.filters)}{outs}"


@dataclass
class FilterGraph:
    """Ordered filter chains."""

    nodes: list[FilterNode] = field(default_factory=list)

    def add(self, inputs: list[str], filters: list[str], outputs: list[str]) -> FilterNode:
        node = FilterNode(inputs=inputs, filters=filters, outputs=outputs)
        self.nodes.append(node)
        return node

    def extend(self, other: "FilterGraph") -> None:
        self.nodes.extend(other.nodes)

    def outputs(self) -> list[str]:
        return [label for node in self.nodes for label in node.outputs]

    def render(self) -> str:
        """Chains joined with ``;``."""
        return ";".join(node.render() for node in self.nodes)

    def __bool__(self) -> bool:
        return bool(self.nodes)

    def __len__(self) -> int:
        return len(self.nodes)


__all__ = [
    "FilterGraph",
    "FilterNode",
]
