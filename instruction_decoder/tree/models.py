"""
Invocation tree models.

Nodes live in one arena list and refer to their children by index, so the
tree has no parent back-references. Traversal is always top-down from the
forest roots.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterator

from instruction_decoder.core.exceptions import DecodeError, TreeReconstructionWarning
from instruction_decoder.decoding.models import DecodedInstruction


@dataclass(frozen=True)
class InnerInstruction:
    """
    A CPI instruction as reported by the runtime.

    parent_index: position of the top-level instruction it ran under.
    stack_height: runtime stack height (1 = top level, 2 = direct CPI); only
    used when the invoke log cannot place the instruction.
    """

    parent_index: int
    instruction: Any
    stack_height: int | None = None


@dataclass
class InstructionNode:
    instruction: Any
    decoded: DecodedInstruction | None
    depth: int
    program_label: str
    top_level_index: int
    children: list[int] = field(default_factory=list)
    index_path: str = ""
    decode_error: DecodeError | None = None
    outcome: str | None = None
    """'success', 'failed: <reason>' from the terminal log marker, None when not logged."""

    @property
    def failed(self) -> bool:
        return self.outcome is not None and self.outcome.startswith("failed")


@dataclass
class InstructionForest:
    """One tree per top-level instruction plus any reconstruction warnings."""

    nodes: list[InstructionNode] = field(default_factory=list)
    roots: list[int] = field(default_factory=list)
    warnings: list[TreeReconstructionWarning] = field(default_factory=list)

    def add(self, node: InstructionNode) -> int:
        self.nodes.append(node)
        return len(self.nodes) - 1

    def node(self, index: int) -> InstructionNode:
        return self.nodes[index]

    def root_nodes(self) -> list[InstructionNode]:
        return [self.nodes[i] for i in self.roots]

    def children(self, node: InstructionNode) -> list[InstructionNode]:
        return [self.nodes[i] for i in node.children]

    def walk(self) -> Iterator[InstructionNode]:
        """Depth-first pre-order over every tree, roots in order."""
        pending = list(reversed(self.roots))
        while pending:
            node = self.nodes[pending.pop()]
            yield node
            pending.extend(reversed(node.children))

    def descendants(self, node: InstructionNode) -> Iterator[InstructionNode]:
        pending = list(reversed(node.children))
        while pending:
            child = self.nodes[pending.pop()]
            yield child
            pending.extend(reversed(child.children))

    def __len__(self) -> int:
        return len(self.nodes)
