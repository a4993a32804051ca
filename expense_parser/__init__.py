"""
Expense Message Parser - Source Package

Turns free-form Vietnamese spending statements ("ăn trưa 150k",
"mua 2 bao gạo 300k hôm qua") into structured expense records.

DESIGN PRINCIPLES:
1. Parsing always succeeds - every input yields a valid record
2. The LLM extracts, deterministic code normalizes
3. Remote failures degrade to the heuristic parser, never to an error
4. Every step is auditable
"""

__version__ = "1.0.0"
__author__ = "Expense Parser Team"
