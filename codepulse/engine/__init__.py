"""
CodePulse analysis engine.

Pipeline pieces, leaves first:
- corpus: load the files a variant table needs
- rules: evaluate one rule against a corpus
- variants: data-only rule tables per technology
- classifier: detect the variant of a checkout
- dispatcher: run a table's rules, one Finding each
- aggregator: findings -> scores and recommendations
"""

from .aggregator import aggregate
from .classifier import UNKNOWN, classify
from .corpus import FileRecord, load
from .dispatcher import analyze
from .rules import ANY_FILE, PROBES, Rule, evaluate, is_satisfied
from .variants import VARIANT_TABLES, VariantTable, get_table

__all__ = [
    "ANY_FILE",
    "PROBES",
    "UNKNOWN",
    "VARIANT_TABLES",
    "FileRecord",
    "Rule",
    "VariantTable",
    "aggregate",
    "analyze",
    "classify",
    "evaluate",
    "get_table",
    "is_satisfied",
    "load",
]
