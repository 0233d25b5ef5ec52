"""
Invocation tree builder — flat instruction lists plus invoke logs to a CPI forest.

The runtime reports top-level instructions, inner instructions grouped by
top-level parent, and log lines with "Program <id> invoke [<depth>]" markers.
Walking the markers in order, each invoke [1] consumes the next top-level
instruction and each invoke [d>1] consumes the next inner instruction of the
current top-level parent and attaches it under the open node at depth d-1.

Shape is driven by depth alone; program ids in terminal markers are never
matched against invokes, since a program may CPI into itself. Inconsistent
logs never abort the build: the node goes to the deepest available ancestor
and a TreeReconstructionWarning is recorded.
"""

from __future__ import annotations

import re
from collections import defaultdict
from typing import Any, Iterable, Sequence

from instruction_decoder.core.exceptions import TreeReconstructionWarning
from instruction_decoder.decoder_logging import get_logger
from instruction_decoder.decoding.programs import program_label
from instruction_decoder.decoding.registry import DecoderRegistry
from instruction_decoder.tree.models import InnerInstruction, InstructionForest, InstructionNode

logger = get_logger(__name__)

INVOKE_RE = re.compile(r"^Program (\S+) invoke \[(\d+)\]$")
SUCCESS_RE = re.compile(r"^Program (\S+) success$")
FAILED_RE = re.compile(r"^Program (\S+) failed: (.*)$")


class _TreeBuilder:
    def __init__(
        self,
        instructions: Sequence[Any],
        inner_instructions: Iterable[InnerInstruction],
        registry: DecoderRegistry,
    ) -> None:
        self.registry = registry
        self.forest = InstructionForest()
        self.top_level = list(instructions)
        self.inner_by_parent: dict[int, list[InnerInstruction]] = defaultdict(list)
        for inner in inner_instructions:
            self.inner_by_parent[inner.parent_index].append(inner)
        self.next_inner: dict[int, int] = defaultdict(int)
        self.next_top = 0
        self.stack: list[int] = []
        self.saw_invoke = False

    def warn(self, message: str, line_index: int | None = None) -> None:
        warning = TreeReconstructionWarning(message, line_index)
        self.forest.warnings.append(warning)
        logger.warning("tree_reconstruction_warning", message=message, line_index=line_index)

    def new_node(self, instruction: Any, depth: int, top_level_index: int) -> int:
        outcome = self.registry.decode_outcome(instruction.program_id, instruction.data, instruction.accounts)
        return self.forest.add(
            InstructionNode(
                instruction=instruction,
                decoded=outcome.decoded,
                depth=depth,
                program_label=program_label(instruction.program_id, self.registry),
                top_level_index=top_level_index,
                decode_error=outcome.error,
            )
        )

    def check_program(self, node_index: int, logged_program: str, line_index: int) -> None:
        actual = str(self.forest.nodes[node_index].instruction.program_id)
        if actual != logged_program:
            self.warn(f"log invokes {logged_program} but the next instruction targets {actual}", line_index)

    def match_top_level(self, logged_program: str) -> int:
        """
        First unconsumed top-level instruction for logged_program, else the next one.

        Instructions skipped over (precompiles log no invoke) are added later as unlogged roots.
        """
        for top_index in range(self.next_top, len(self.top_level)):
            if str(self.top_level[top_index].program_id) == logged_program:
                return top_index
        return self.next_top

    def on_invoke(self, logged_program: str, depth: int, line_index: int) -> None:
        self.saw_invoke = True
        if depth <= 1:
            self.stack.clear()
            if self.next_top >= len(self.top_level):
                self.warn("invoke [1] with no remaining top-level instruction", line_index)
                return
            top_index = self.match_top_level(logged_program)
            self.next_top = top_index + 1
            node = self.new_node(self.top_level[top_index], 0, top_index)
            self.forest.roots.append(node)
            self.stack.append(node)
            self.check_program(node, logged_program, line_index)
            return

        if not self.stack:
            self.warn(f"invoke [{depth}] outside any top-level instruction", line_index)
            return
        if len(self.stack) < depth - 1:
            self.warn(
                f"invoke [{depth}] skips levels; attached under depth {len(self.stack) - 1}",
                line_index,
            )
        del self.stack[depth - 1 :]
        parent = self.stack[-1]
        top_index = self.forest.nodes[self.stack[0]].top_level_index
        queue = self.inner_by_parent.get(top_index, [])
        position = self.next_inner[top_index]
        if position >= len(queue):
            self.warn(
                f"invoke [{depth}] has no remaining inner instruction under #{top_index + 1}",
                line_index,
            )
            return
        self.next_inner[top_index] = position + 1
        node = self.new_node(queue[position].instruction, len(self.stack), top_index)
        self.forest.nodes[parent].children.append(node)
        self.stack.append(node)
        self.check_program(node, logged_program, line_index)

    def on_terminal(self, outcome: str) -> None:
        # Children finish before their parents: the deepest open node is the one finishing.
        for node_index in reversed(self.stack):
            node = self.forest.nodes[node_index]
            if node.outcome is None:
                node.outcome = outcome
                return

    def walk_logs(self, logs: Iterable[str]) -> None:
        for line_index, raw_line in enumerate(logs):
            line = raw_line.strip()
            m = INVOKE_RE.match(line)
            if m:
                self.on_invoke(m.group(1), int(m.group(2)), line_index)
                continue
            if SUCCESS_RE.match(line):
                self.on_terminal("success")
                continue
            m = FAILED_RE.match(line)
            if m:
                self.on_terminal(f"failed: {m.group(2)}")

    def attach_by_stack_height(self, root: int, inners: Sequence[InnerInstruction]) -> None:
        """Place inner instructions the log did not account for, using the runtime's stack height."""
        for inner in inners:
            parent_depth = (inner.stack_height - 2) if inner.stack_height else 0
            parent = root
            node = self.forest.nodes[root]
            # Follow the most recent branch down to the requested depth, or as deep as it goes.
            while node.depth < parent_depth and node.children:
                parent = node.children[-1]
                node = self.forest.nodes[parent]
            child = self.new_node(inner.instruction, node.depth + 1, node.top_level_index)
            node.children.append(child)

    def finish(self) -> InstructionForest:
        logged_roots = {self.forest.nodes[i].top_level_index: i for i in self.forest.roots}
        for top_index, instruction in enumerate(self.top_level):
            queue = self.inner_by_parent.get(top_index, [])
            remaining = queue[self.next_inner[top_index] :]
            root = logged_roots.get(top_index)
            if root is None:
                root = self.new_node(instruction, 0, top_index)
                self.forest.roots.append(root)
                if self.saw_invoke:
                    self.warn(f"instruction #{top_index + 1} has no invoke entry in the log")
            elif remaining and self.saw_invoke:
                self.warn(
                    f"{len(remaining)} inner instruction(s) of #{top_index + 1} missing from the log; placed by stack height"
                )
            self.attach_by_stack_height(root, remaining)
        orphaned = sorted(set(self.inner_by_parent) - set(range(len(self.top_level))))
        for parent_index in orphaned:
            self.warn(f"inner instructions reference missing top-level instruction #{parent_index + 1}")
        self.forest.roots.sort(key=lambda i: self.forest.nodes[i].top_level_index)
        assign_index_paths(self.forest)
        return self.forest


def assign_index_paths(forest: InstructionForest) -> None:
    """Dotted positional numbering: 1, 1.1, 1.1.1, 2, ..."""
    pending = [(root, str(i + 1)) for i, root in enumerate(forest.roots)]
    while pending:
        node_index, path = pending.pop()
        node = forest.nodes[node_index]
        node.index_path = path
        pending.extend((child, f"{path}.{i + 1}") for i, child in enumerate(node.children))


def build_tree(
    instructions: Sequence[Any],
    inner_instructions: Iterable[InnerInstruction],
    logs: Iterable[str],
    registry: DecoderRegistry,
) -> InstructionForest:
    """
    Rebuild the CPI forest for one transaction.

    Always returns one root per top-level instruction. Instructions the log
    does not mention are still placed (by stack height) and reported in
    forest.warnings when the log had invoke markers at all.
    """
    builder = _TreeBuilder(instructions, inner_instructions, registry)
    builder.walk_logs(logs)
    return builder.finish()
