"""
Shared pieces of the variant rule tables.

- VariantTable: the data-only description of one technology
- Common rules: signals that mean the same thing in every stack
  (tests, build tooling, documentation, structure, comments, long functions,
  duplication, indentation)
"""

from dataclasses import dataclass

from ...schemas import Category
from ..rules import ANY_FILE, Rule


# =============================================================================
# VARIANT TABLE
# =============================================================================

@dataclass(frozen=True)
class VariantTable:
    """All the rules for one recognized technology stack."""
    tag: str
    rules: tuple[Rule, ...]
    extensions: tuple[str, ...]  # Code files; what Rule.extensions=None means
    config_extensions: tuple[str, ...] = ()
    names: tuple[str, ...] = ()  # Basenames loaded whatever their extension (Makefile, Podfile)

    @property
    def load_extensions(self) -> frozenset[str]:
        """Every extension some rule in this table looks at."""
        wanted = set(self.extensions) | set(self.config_extensions)
        for rule in self.rules:
            if rule.extensions is not None and rule.extensions != ANY_FILE:
                wanted.update(rule.extensions)
        return frozenset(ext.lower() for ext in wanted)

    @property
    def load_names(self) -> frozenset[str]:
        return frozenset(self.names)

    def categories(self) -> set[Category]:
        return {rule.category for rule in self.rules}


# Build files the common build-tool rule needs loaded whatever the stack
BUILD_FILE_NAMES = (
    "package.json", "webpack.config.js", "build.gradle", "build.gradle.kts", "pom.xml",
    "Makefile", "CMakeLists.txt", "Podfile", "pubspec.yaml",
    "pyproject.toml", "setup.py", "composer.json",
)

CONFIG_EXTENSIONS = (".json", ".yaml", ".yml", ".xml", ".config", ".properties", ".plist", ".gradle")

DOC_EXTENSIONS = (".md", ".rst", ".txt")

# Cleartext URLs, minus loopback/emulator hosts and XML namespace identifiers
CLEARTEXT_URL = (
    r"""["'`]http://(?!localhost\b|127\.0\.0\.1|0\.0\.0\.0|10\.0\.2\.2|"""
    r"""schemas\.|www\.w3\.org|ns\.adobe\.com|www\.apple\.com/DTDs)"""
)


# =============================================================================
# COMMON STRENGTHS
# =============================================================================

TESTS = Rule(
    id="common.tests",
    category=Category.STRENGTH,
    message="Automated tests for the code",
    patterns=(
        r"(?:^|/)(?:test|tests|spec|specs|__tests__)/",
        r"\.(?:test|spec)\.[jt]sx?$",
        r"\w(?:Test|Tests)\.(?:java|kt|swift|cs)$",
        r"(?:^|/)test_\w+\.py$",
        r"_test\.(?:dart|py|go)$",
    ),
    extensions=ANY_FILE,
    target="path",
)

BUILD_TOOLS = Rule(
    id="common.build_tools",
    category=Category.STRENGTH,
    message="Build and packaging tooling for the project",
    patterns=(
        r"^(?:package\.json|webpack\.config\.js|build\.gradle(?:\.kts)?|pom\.xml|Makefile|"
        r"CMakeLists\.txt|Podfile|pubspec\.yaml|pyproject\.toml|setup\.py|composer\.json)$",
    ),
    extensions=ANY_FILE,
    target="path",
)

DOCUMENTATION = Rule(
    id="common.documentation",
    category=Category.STRENGTH,
    message="Project documentation (README, contributing guide, docs folder)",
    patterns=(
        r"^(?i:README|CONTRIBUTING|DOCUMENTATION)\.(?:md|rst|txt)$",
        r"^(?:docs|doc|javadoc|doxygen)/",
    ),
    extensions=ANY_FILE,
    target="path",
)

DOC_COMMENTS = Rule(
    id="common.doc_comments",
    category=Category.STRENGTH,
    message="Documentation comments in the code",
    patterns=(r"/\*\*", r"^\s*///", r'^\s*"""'),
    min_occurrences=3,
)

STRUCTURE = Rule(
    id="common.structure",
    category=Category.STRENGTH,
    message="Organized project structure",
    patterns=(
        r"^(?:src|lib|app|source|assets|resources|components|utils|helpers|models|controllers|views)/",
    ),
    extensions=ANY_FILE,
    target="path",
    distinct=True,  # Count distinct folders, not files
    min_occurrences=3,
)


# =============================================================================
# COMMON WEAKNESSES
# =============================================================================

def missing_comments(threshold: float) -> Rule:
    """Comment-density rule; the default analyzer accepts 5%, stack tables 10%."""
    return Rule(
        id="common.missing_comments",
        category=Category.WEAKNESS,
        message="Insufficient comments in the code",
        probe="comment_deficit",
        threshold=threshold,
    )


LONG_FUNCTIONS = Rule(
    id="common.long_functions",
    category=Category.WEAKNESS,
    message="Overly long functions that should be split up ({count} found)",
    probe="long_functions",
    threshold=100,
)

DUPLICATION = Rule(
    id="common.duplication",
    category=Category.WEAKNESS,
    message="Duplicated code that could be consolidated",
    probe="duplicate_segments",
    threshold=0.1,  # More than 10% of 3-line segments repeated
)

MIXED_INDENTATION = Rule(
    id="common.mixed_indentation",
    category=Category.WEAKNESS,
    message="Inconsistent code style (mixed tab and space indentation)",
    probe="mixed_indentation",
    threshold=0.15,
)


def large_files(threshold: int = 10000) -> Rule:
    """Oversized source files, counted against performance."""
    return Rule(
        id="common.large_files",
        category=Category.PERFORMANCE,
        message="Oversized source files that are slow to load and review ({count} files)",
        probe="large_files",
        threshold=threshold,
    )


COMMON_STRENGTHS = (TESTS, BUILD_TOOLS, DOCUMENTATION, DOC_COMMENTS, STRUCTURE)
