"""
CPI invocation tree reconstruction.
"""

from instruction_decoder.tree.builder import assign_index_paths, build_tree
from instruction_decoder.tree.models import InnerInstruction, InstructionForest, InstructionNode

__all__ = [
    "InnerInstruction",
    "InstructionForest",
    "InstructionNode",
    "assign_index_paths",
    "build_tree",
]
