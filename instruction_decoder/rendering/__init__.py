"""
Text rendering of decoded transactions.
"""

from instruction_decoder.rendering.formatter import TransactionFormatter, format_sol, render
from instruction_decoder.rendering.table import render_table

__all__ = ["TransactionFormatter", "format_sol", "render", "render_table"]
