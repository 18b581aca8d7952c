"""
Analyzer Dispatcher for CodePulse

Runs every rule of a variant table against one corpus and returns one
Finding per rule, in table order.
"""

import logging
from concurrent.futures import ThreadPoolExecutor

from ..schemas import Finding
from .corpus import FileRecord
from .rules import Rule, evaluate, is_satisfied
from .variants import VariantTable, get_table

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 4


def _run_rule(corpus: list[FileRecord], rule: Rule, table: VariantTable) -> Finding:
    count = evaluate(corpus, rule, table.extensions)
    return Finding(
        rule_id=rule.id,
        category=rule.category,
        message=rule.render(count),
        triggered=is_satisfied(rule, count),
        occurrence_count=count,
        weight=rule.weight,
    )


def analyze(corpus: list[FileRecord], variant_tag: str | None, max_workers: int | None = None) -> list[Finding]:
    """
    Evaluate a variant's rule table over a corpus.

    Args:
        corpus: Files loaded for this run (shared read-only by every rule)
        variant_tag: Classifier output; unknown tags use the default table
        max_workers: Bound on concurrent rule evaluations

    Returns:
        One Finding per rule, in table order. All rules have finished
        before this returns.
    """
    table = get_table(variant_tag)
    if table.tag != variant_tag:
        logger.info(f"No rule table for variant {variant_tag!r}, using {table.tag}")

    workers = max(1, max_workers or DEFAULT_MAX_WORKERS)
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="rules") as pool:
        # map() keeps input order and re-raises the first rule error here
        findings = list(pool.map(lambda rule: _run_rule(corpus, rule, table), table.rules))

    triggered = sum(1 for finding in findings if finding.triggered)
    logger.debug(f"Evaluated {len(findings)} rules for {table.tag}: {triggered} triggered")
    return findings
