"""
Tests for the invocation tree builder (tree.builder.build_tree).

Logs are written the way the runtime emits them: "Program <id> invoke [n]",
"Program <id> success", "Program <id> failed: <reason>", interleaved with
program log and compute lines the builder ignores.
"""

from __future__ import annotations

from conftest import key, make_ix
from instruction_decoder.decoding import anchor_discriminator
from instruction_decoder.decoding.programs import SYSTEM_PROGRAM_ID
from instruction_decoder.tree import InnerInstruction, build_tree

SYS = str(SYSTEM_PROGRAM_ID)


def _transfer(lamports: int = 1_000):
    data = (2).to_bytes(4, "little") + lamports.to_bytes(8, "little")
    return make_ix(SYSTEM_PROGRAM_ID, data, [(key(10), True, True), (key(11), False, True)])


def _increment(program_id, amount: int = 1):
    return make_ix(program_id, anchor_discriminator("increment") + amount.to_bytes(8, "little"), [key(12), key(10)])


def test_single_cpi(registry, counter_id):
    """invoke [1], invoke [2], success, success -> one root with one child at depth 1."""
    c = str(counter_id)
    logs = [
        f"Program {c} invoke [1]",
        "Program log: Instruction: Increment",
        f"Program {SYS} invoke [2]",
        f"Program {SYS} success",
        f"Program {c} consumed 4521 of 200000 compute units",
        f"Program {c} success",
    ]
    forest = build_tree([_increment(counter_id)], [InnerInstruction(0, _transfer())], logs, registry)
    roots = forest.root_nodes()
    assert len(roots) == 1
    root = roots[0]
    assert root.decoded.instruction_name == "Increment"
    assert root.program_label == "Counter"
    assert root.outcome == "success"
    children = forest.children(root)
    assert len(children) == 1
    assert children[0].depth == 1
    assert children[0].decoded.instruction_name == "Transfer"
    assert children[0].index_path == "1.1"
    assert forest.warnings == []


def test_self_cpi_gives_distinct_nodes(registry, counter_id):
    """A program invoking itself produces two nodes, nested by depth."""
    c = str(counter_id)
    logs = [f"Program {c} invoke [1]", f"Program {c} invoke [2]", f"Program {c} success", f"Program {c} success"]
    forest = build_tree(
        [_increment(counter_id, 1)], [InnerInstruction(0, _increment(counter_id, 2))], logs, registry
    )
    assert len(forest) == 2
    root = forest.root_nodes()[0]
    child = forest.children(root)[0]
    assert child is not root
    assert child.depth == 1
    assert child.decoded.field_value("amount") == "2"
    assert root.outcome == "success"
    assert child.outcome == "success"


def test_nested_depths_and_index_paths(registry):
    a, b, c, d = key(40), key(41), key(42), key(43)
    logs = [
        f"Program {a} invoke [1]",
        f"Program {b} invoke [2]",
        f"Program {c} invoke [3]",
        f"Program {c} success",
        f"Program {b} success",
        f"Program {d} invoke [2]",
        f"Program {d} success",
        f"Program {a} success",
    ]
    inner = [InnerInstruction(0, make_ix(p)) for p in (b, c, d)]
    forest = build_tree([make_ix(a)], inner, logs, registry)
    paths = {str(n.instruction.program_id): (n.index_path, n.depth) for n in forest.walk()}
    assert paths == {str(a): ("1", 0), str(b): ("1.1", 1), str(c): ("1.1.1", 2), str(d): ("1.2", 1)}
    assert [n.index_path for n in forest.walk()] == ["1", "1.1", "1.1.1", "1.2"]
    assert all(n.program_label == "Unknown Program" for n in forest.walk())
    assert forest.warnings == []


def test_roots_match_top_level_count(registry, counter_id):
    c = str(counter_id)
    logs = [
        f"Program {SYS} invoke [1]",
        f"Program {SYS} success",
        f"Program {c} invoke [1]",
        f"Program {SYS} invoke [2]",
        f"Program {SYS} success",
        f"Program {c} success",
    ]
    forest = build_tree(
        [_transfer(), _increment(counter_id)], [InnerInstruction(1, _transfer(5))], logs, registry
    )
    roots = forest.root_nodes()
    assert len(roots) == 2
    assert roots[0].children == []
    assert [n.index_path for n in forest.walk()] == ["1", "2", "2.1"]
    assert forest.children(roots[1])[0].top_level_index == 1


def test_skipped_level_attaches_to_deepest_ancestor(registry):
    a, b = key(40), key(41)
    logs = [f"Program {a} invoke [1]", f"Program {b} invoke [3]", f"Program {b} success", f"Program {a} success"]
    forest = build_tree([make_ix(a)], [InnerInstruction(0, make_ix(b))], logs, registry)
    root = forest.root_nodes()[0]
    child = forest.children(root)[0]
    assert child.depth == 1
    assert len(forest.warnings) == 1
    assert "skips levels" in str(forest.warnings[0])
    assert str(forest.warnings[0]).startswith("log line 2:")


def test_missing_logs_fall_back_to_stack_height(registry):
    a, b, c, d = key(40), key(41), key(42), key(43)
    inner = [
        InnerInstruction(0, make_ix(b), stack_height=2),
        InnerInstruction(0, make_ix(c), stack_height=3),
        InnerInstruction(0, make_ix(d), stack_height=2),
    ]
    forest = build_tree([make_ix(a)], inner, [], registry)
    assert [(n.index_path, n.depth) for n in forest.walk()] == [("1", 0), ("1.1", 1), ("1.1.1", 2), ("1.2", 1)]
    assert forest.warnings == []


def test_truncated_log_places_rest_with_warning(registry):
    a, b = key(40), key(41)
    forest = build_tree(
        [make_ix(a)], [InnerInstruction(0, make_ix(b), stack_height=2)], [f"Program {a} invoke [1]"], registry
    )
    root = forest.root_nodes()[0]
    assert len(root.children) == 1
    assert len(forest.warnings) == 1
    assert "missing from the log" in str(forest.warnings[0])


def test_unlogged_top_level_instruction_keeps_order(registry):
    a, b = key(40), key(41)
    logs = [f"Program {b} invoke [1]", f"Program {a} success"]
    forest = build_tree([make_ix(b), make_ix(a)], [], logs, registry)
    assert [str(n.instruction.program_id) for n in forest.root_nodes()] == [str(b), str(a)]
    assert [n.index_path for n in forest.root_nodes()] == ["1", "2"]
    assert len(forest.warnings) == 1


def test_failed_outcome_propagates_to_nodes(registry):
    a, b = key(40), key(41)
    logs = [
        f"Program {a} invoke [1]",
        f"Program {b} invoke [2]",
        "Program log: Error: insufficient funds",
        f"Program {b} failed: custom program error: 0x1",
        f"Program {a} failed: custom program error: 0x1",
    ]
    forest = build_tree([make_ix(a)], [InnerInstruction(0, make_ix(b))], logs, registry)
    root = forest.root_nodes()[0]
    child = forest.children(root)[0]
    assert child.outcome == "failed: custom program error: 0x1"
    assert child.failed
    assert root.failed


def test_program_mismatch_is_a_warning(registry):
    a, b = key(40), key(41)
    forest = build_tree([make_ix(a)], [], [f"Program {b} invoke [1]", f"Program {b} success"], registry)
    assert len(forest.root_nodes()) == 1
    assert len(forest.warnings) == 1
    assert str(b) in str(forest.warnings[0])


def test_undecodable_node_keeps_error(registry, counter_id):
    forest = build_tree([make_ix(counter_id, b"\x01\x02")], [], [], registry)
    node = forest.root_nodes()[0]
    assert node.decoded is None
    assert node.decode_error.describe().startswith("truncated")


def test_unlogged_precompile_does_not_shift_program_invokes(registry):
    """A precompile writes no invoke line; the program's log entries still land on the program's root."""
    precompile, program, callee = key(44), key(45), key(46)
    logs = [
        f"Program {program} invoke [1]",
        f"Program {callee} invoke [2]",
        f"Program {callee} failed: custom program error: 0x1",
        f"Program {program} failed: custom program error: 0x1",
    ]
    forest = build_tree(
        [make_ix(precompile), make_ix(program)], [InnerInstruction(1, make_ix(callee))], logs, registry
    )
    first, second = forest.root_nodes()
    assert first.instruction.program_id == precompile
    assert first.outcome is None
    assert first.children == []
    assert second.instruction.program_id == program
    assert second.failed
    child = forest.children(second)[0]
    assert child.instruction.program_id == callee
    assert child.index_path == "2.1"
    assert child.failed
    assert len(forest.warnings) == 1
    assert "#1 has no invoke entry" in str(forest.warnings[0])
