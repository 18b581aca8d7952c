"""
Rule Engine for CodePulse

A Rule is one weighted heuristic: a set of include regexes (or a named corpus
probe), file-level exclusion regexes and a trigger threshold. Rules are plain
configuration, defined once per variant table and shared read-only by every
concurrent analysis run.

Evaluation:
- Pick the files the rule looks at (by extension)
- Drop every file where an exclusion pattern matches (file-level, not match-level)
  and every file missing all of the rule's co-signal (require) patterns
- Count non-overlapping include matches across the remaining files
  (or let the named probe count)
- Satisfied when min_occurrences == 0 and count > 0,
  or min_occurrences > 0 and count >= min_occurrences
"""

import re
from dataclasses import dataclass, field
from typing import Callable, Iterable

from ..errors import RuleConfigError
from ..schemas import Category
from .corpus import FileRecord


# =============================================================================
# CONFIGURATION
# =============================================================================

# Rule.extensions value meaning "every loaded file"
ANY_FILE = ("*",)

TARGETS = ("content", "path")


# =============================================================================
# RULE
# =============================================================================

@dataclass(frozen=True)
class Rule:
    """A weighted pattern-based heuristic check."""
    id: str
    category: Category
    message: str  # "{count}" is replaced by the occurrence count
    patterns: tuple[str, ...] = ()
    exclude: tuple[str, ...] = ()
    require: tuple[str, ...] = ()  # File must also match one of these (co-signal)
    min_occurrences: int = 0
    weight: int = 1
    # None = the table's code extensions, ANY_FILE = every loaded file
    extensions: tuple[str, ...] | None = None
    target: str = "content"  # "content" or "path"
    distinct: bool = False  # Count distinct matched strings instead of every match
    probe: str | None = None  # Name in PROBES, replaces pattern counting
    threshold: float = 0.0  # Probe parameter

    _compiled: tuple[re.Pattern, ...] = field(init=False, repr=False, compare=False)
    _compiled_exclude: tuple[re.Pattern, ...] = field(init=False, repr=False, compare=False)
    _compiled_require: tuple[re.Pattern, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        if not isinstance(self.category, Category):
            try:
                object.__setattr__(self, "category", Category(self.category))
            except ValueError:
                raise RuleConfigError(f"Rule {self.id}: unknown category {self.category!r}") from None
        if self.target not in TARGETS:
            raise RuleConfigError(f"Rule {self.id}: unknown target {self.target!r}")
        if self.min_occurrences < 0:
            raise RuleConfigError(f"Rule {self.id}: min_occurrences must be >= 0")
        if self.weight < 1:
            raise RuleConfigError(f"Rule {self.id}: weight must be >= 1")
        if self.probe is None and not self.patterns:
            raise RuleConfigError(f"Rule {self.id}: needs patterns or a probe")
        if self.probe is not None and self.probe not in PROBES:
            raise RuleConfigError(f"Rule {self.id}: unknown probe {self.probe!r}")

        object.__setattr__(self, "_compiled", _compile_all(self.id, self.patterns))
        object.__setattr__(self, "_compiled_exclude", _compile_all(self.id, self.exclude))
        object.__setattr__(self, "_compiled_require", _compile_all(self.id, self.require))

    def render(self, count: int) -> str:
        """Render the message template for a given occurrence count."""
        return self.message.replace("{count}", str(count))


def _compile_all(rule_id: str, patterns: Iterable[str]) -> tuple[re.Pattern, ...]:
    compiled = []
    for pattern in patterns:
        try:
            compiled.append(re.compile(pattern, re.MULTILINE))
        except re.error as e:
            raise RuleConfigError(f"Rule {rule_id}: invalid pattern {pattern!r}: {e}") from e
    return tuple(compiled)


# =============================================================================
# EVALUATION
# =============================================================================

def candidate_files(corpus: list[FileRecord], rule: Rule, code_extensions: Iterable[str]) -> list[FileRecord]:
    """Files the rule applies to, before exclusion."""
    if rule.extensions == ANY_FILE:
        return list(corpus)
    allowed = {ext.lower() for ext in (rule.extensions if rule.extensions is not None else code_extensions)}
    return [record for record in corpus if record.extension in allowed]


def _target_text(record: FileRecord, rule: Rule) -> str:
    return record.path if rule.target == "path" else record.content


def evaluate(corpus: list[FileRecord], rule: Rule, code_extensions: Iterable[str] = ()) -> int:
    """
    Count a rule's occurrences across a corpus.

    Args:
        corpus: Loaded files (read-only)
        rule: Rule to evaluate (read-only)
        code_extensions: What `extensions=None` means for this rule's table

    Returns:
        Occurrence count (matches, distinct matches, or probe count)
    """
    files = []
    for record in candidate_files(corpus, rule, code_extensions):
        text = _target_text(record, rule)
        # A countersignal anywhere in the file discards all of its matches
        if any(pattern.search(text) for pattern in rule._compiled_exclude):
            continue
        if rule._compiled_require and not any(pattern.search(text) for pattern in rule._compiled_require):
            continue
        files.append(record)

    if rule.probe is not None:
        return PROBES[rule.probe](files, rule.threshold)

    if rule.distinct:
        seen: set[str] = set()
        for record in files:
            text = _target_text(record, rule)
            for pattern in rule._compiled:
                seen.update(match.group(0) for match in pattern.finditer(text))
        return len(seen)

    total = 0
    for record in files:
        text = _target_text(record, rule)
        for pattern in rule._compiled:
            total += sum(1 for _ in pattern.finditer(text))
    return total


def is_satisfied(rule: Rule, count: int) -> bool:
    """Whether an occurrence count triggers the rule."""
    if rule.min_occurrences == 0:
        return count > 0
    return count >= rule.min_occurrences


# =============================================================================
# CORPUS PROBES
# =============================================================================
# Heuristics that are not a single regex. Each takes the rule's (already
# filtered) files and its threshold and returns an occurrence count.

COMMENT_PREFIXES = ("//", "/*", "*", "#", "///", '"""', "'''")

# Function headers for the languages the variant tables cover
FUNCTION_HEADER = re.compile(
    r"""^\s*(?:
        (?:export\s+)?(?:async\s+)?function\s+\w+\s*\(                               # JavaScript / TypeScript
      | (?:const|let|var)\s+\w+\s*=\s*(?:async\s+)?\([^)]*\)\s*=>\s*\{                # Arrow functions
      | (?:(?:public|private|protected|internal|static|override|final|open|async|virtual|abstract)\s+)+
            [\w<>\[\],.?\s]*?\w+\s*\(                                               # Java / C# / Kotlin members
      | (?:(?:override|private|public|static|@\w+)\s+)*func\s+\w+\s*[<(]               # Swift
      | (?:suspend\s+)?fun\s+[\w.<>]+\s*\(                                           # Kotlin
      | (?:void|Future<[^>]*>|Widget|String|int|double|bool|dynamic)\s+\w+\s*\(      # Dart
      | [-+]\s*\([^)]*\)\s*\w+                                                     # Objective-C
    )""",
    re.VERBOSE,
)
PYTHON_DEF = re.compile(r"^(\s*)(?:async\s+)?def\s+\w+\s*\(")


def comment_deficit(files: list[FileRecord], threshold: float) -> int:
    """1 when comment lines make up less than `threshold` of the corpus."""
    total_lines = 0
    comment_lines = 0
    for record in files:
        for line in record.content.split("\n"):
            stripped = line.strip()
            if not stripped:
                continue
            total_lines += 1
            if stripped.startswith(COMMENT_PREFIXES):
                comment_lines += 1

    if total_lines == 0:
        return 0
    return 1 if comment_lines / total_lines < threshold else 0


def _brace_body_length(lines: list[str], start: int) -> int:
    """Lines from a header to the brace that closes its body (0 if none opens)."""
    depth = 0
    opened = False
    for index in range(start, len(lines)):
        for char in lines[index]:
            if char == "{":
                depth += 1
                opened = True
            elif char == "}":
                depth -= 1
        if opened and depth <= 0:
            return index - start + 1
        # Header without a body (declaration, abstract member)
        if not opened and index - start >= 2:
            return 0
    return len(lines) - start if opened else 0


def _python_body_length(lines: list[str], start: int, indent: int) -> int:
    end = start + 1
    for index in range(start + 1, len(lines)):
        line = lines[index]
        if line.strip() and len(line) - len(line.lstrip()) <= indent:
            break
        end = index + 1
    return end - start


def long_functions(files: list[FileRecord], threshold: float) -> int:
    """Number of function bodies longer than `threshold` lines."""
    count = 0
    for record in files:
        lines = record.content.split("\n")
        for index, line in enumerate(lines):
            python_match = PYTHON_DEF.match(line) if record.extension == ".py" else None
            if python_match:
                length = _python_body_length(lines, index, len(python_match.group(1)))
            elif record.extension != ".py" and FUNCTION_HEADER.match(line):
                length = _brace_body_length(lines, index)
            else:
                continue
            if length > threshold:
                count += 1
    return count


def duplicate_segments(files: list[FileRecord], threshold: float) -> int:
    """
    Repeated 3-line segments, reported only when their share of all
    segments exceeds `threshold`.
    """
    segment_length = 3
    segments: list[str] = []
    for record in files:
        lines = record.content.split("\n")
        for index in range(len(lines) - segment_length + 1):
            segment = "\n".join(lines[index:index + segment_length])
            if len(segment.strip()) > 50:  # Ignore trivial segments
                segments.append(segment)

    if not segments:
        return 0
    repeated = len(segments) - len(set(segments))
    return repeated if repeated / len(segments) > threshold else 0


def mixed_indentation(files: list[FileRecord], threshold: float) -> int:
    """1 when both spaces and tabs each indent more than `threshold` of lines."""
    spaces = 0
    tabs = 0
    for record in files:
        for line in record.content.split("\n"):
            if line.startswith(" "):
                spaces += 1
            elif line.startswith("\t"):
                tabs += 1

    total = spaces + tabs
    if total == 0:
        return 0
    return 1 if spaces / total > threshold and tabs / total > threshold else 0


def large_files(files: list[FileRecord], threshold: float) -> int:
    """Number of files longer than `threshold` characters."""
    return sum(1 for record in files if len(record.content) > threshold)


PROBES: dict[str, Callable[[list[FileRecord], float], int]] = {
    "comment_deficit": comment_deficit,
    "long_functions": long_functions,
    "duplicate_segments": duplicate_segments,
    "mixed_indentation": mixed_indentation,
    "large_files": large_files,
}
