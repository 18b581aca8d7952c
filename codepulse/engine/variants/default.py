"""
Default rule table.

Used for every repository whose stack the classifier does not recognize.
Looks at code in all the languages the other tables know about, plus Python
and PHP, and at common configuration files.
"""

from ...schemas import Category
from ..rules import Rule
from .common import (
    BUILD_FILE_NAMES,
    CLEARTEXT_URL,
    COMMON_STRENGTHS,
    CONFIG_EXTENSIONS,
    DOC_EXTENSIONS,
    DUPLICATION,
    LONG_FUNCTIONS,
    MIXED_INDENTATION,
    VariantTable,
    missing_comments,
)

CODE_EXTENSIONS = (
    ".js", ".jsx", ".ts", ".tsx",
    ".dart", ".cs", ".java", ".kt", ".swift", ".m", ".h",
    ".py", ".php",
)

CODE_AND_CONFIG = CODE_EXTENSIONS + CONFIG_EXTENSIONS


# -----------------------------------------------------------------------------
# PERFORMANCE
# -----------------------------------------------------------------------------

PERFORMANCE_RULES = (
    Rule(
        id="default.loop_recomputation",
        category=Category.PERFORMANCE,
        message="Repeated computations inside loop conditions",
        patterns=(r"\b(?:for|while)\s*\([^)\n]*\.(?:length|size\(\)|count\(\)|getSize\(\))",),
    ),
    Rule(
        id="default.nested_loops",
        category=Category.PERFORMANCE,
        message="High time-complexity algorithms (nested loops)",
        patterns=(
            r"O\(n\^2\)",
            r"nested\s+for",
            r"\bfor\s*\([^\n]*\{\s*\n\s*for\s*\(",
        ),
    ),
    Rule(
        id="default.dom_access",
        category=Category.PERFORMANCE,
        message="Heavy DOM manipulation that can slow rendering",
        patterns=(r"document\.getElement", r"document\.query", r"\$\(\s*['\"]"),
        extensions=(".js", ".jsx", ".ts", ".tsx"),
        min_occurrences=5,
    ),
)


# -----------------------------------------------------------------------------
# MEMORY
# -----------------------------------------------------------------------------

MEMORY_RULES = (
    Rule(
        id="default.listener_leak",
        category=Category.MEMORY,
        message="Event listeners that are never removed",
        patterns=(r"\baddEventListener\b", r"\baddListener\b"),
        exclude=(r"\bremoveEventListener\b", r"\bremoveListener\b"),
    ),
    Rule(
        id="default.huge_allocations",
        category=Category.MEMORY,
        message="Very large arrays or objects allocated in memory",
        patterns=(r"new Array\(\d{5,}\)", r"new \w+\[\d{5,}\]"),
    ),
    Rule(
        id="default.unreleased_resources",
        category=Category.MEMORY,
        message="Resources that are not released after use",
        patterns=(r"\bopen\s*\(", r"\.connect\s*\("),
        exclude=(r"\bclose\s*\(", r"\bdisconnect\b", r"\bdispose\b", r"\bwith\s+open\b", r"\busing\s*\("),
    ),
)


# -----------------------------------------------------------------------------
# BATTERY
# -----------------------------------------------------------------------------

BATTERY_RULES = (
    Rule(
        id="default.location",
        category=Category.BATTERY,
        message="Location services that drain the battery",
        patterns=(r"\bgetLocation\b", r"\bLocationManager\b", r"\bCLLocationManager\b", r"navigator\.geolocation"),
    ),
    Rule(
        id="default.timers",
        category=Category.BATTERY,
        message="Repeating timers that drain the battery",
        patterns=(r"\bsetInterval\s*\(", r"\bNSTimer\b", r"Timer\.scheduledTimer", r"Timer\.periodic", r"\bnew Timer\b"),
    ),
    Rule(
        id="default.sensors",
        category=Category.BATTERY,
        message="Sensor usage (accelerometer, gyroscope, compass) that drains the battery",
        patterns=(r"\bAccelerometer\b", r"\bGyroscope\b", r"\bCompass\b", r"\bSensorManager\b", r"\bCMMotionManager\b"),
    ),
)


# -----------------------------------------------------------------------------
# SECURITY
# -----------------------------------------------------------------------------

SECURITY_RULES = (
    Rule(
        id="default.hardcoded_credentials",
        category=Category.SECURITY,
        message="Hardcoded credentials in code or configuration",
        patterns=(
            r"""(?i)\b(?:api[_-]?key|secret(?:[_-]?key)?|password|passwd|auth[_-]?token|access[_-]?token)\b["']?\s*[=:]\s*["'][^"'\s]{8,}["']""",
        ),
        extensions=CODE_AND_CONFIG,
    ),
    Rule(
        id="default.dynamic_execution",
        category=Category.SECURITY,
        message="Use of eval or exec style dynamic code execution",
        patterns=(r"\beval\s*\(", r"\bexec\s*\(", r"\bsystem\s*\(", r"dangerouslySetInnerHTML", r"\bnew Function\s*\("),
    ),
    Rule(
        id="default.xss",
        category=Category.SECURITY,
        message="Possible XSS through innerHTML or document.write",
        patterns=(r"\.innerHTML\s*=", r"document\.write\s*\("),
    ),
    Rule(
        id="default.cleartext_http",
        category=Category.SECURITY,
        message="Unencrypted HTTP connections",
        patterns=(CLEARTEXT_URL,),
        extensions=CODE_AND_CONFIG,
    ),
)


TABLE = VariantTable(
    tag="default",
    rules=(
        *COMMON_STRENGTHS,
        missing_comments(0.05),
        LONG_FUNCTIONS,
        DUPLICATION,
        MIXED_INDENTATION,
        *PERFORMANCE_RULES,
        *MEMORY_RULES,
        *BATTERY_RULES,
        *SECURITY_RULES,
    ),
    extensions=CODE_EXTENSIONS,
    config_extensions=CONFIG_EXTENSIONS + DOC_EXTENSIONS,
    names=BUILD_FILE_NAMES,
)
