"""
React Native rule table.
"""

from ...schemas import Category
from ..rules import Rule
from .common import (
    BUILD_FILE_NAMES,
    BUILD_TOOLS,
    DOC_EXTENSIONS,
    DOCUMENTATION,
    DUPLICATION,
    VariantTable,
    large_files,
    missing_comments,
)

JS = (".js", ".jsx", ".ts", ".tsx")
TS = (".ts", ".tsx")


STRENGTHS = (
    Rule(
        id="react-native.redux",
        category=Category.STRENGTH,
        message="Redux (or a reducer store) for application state",
        patterns=(r"\bcreateStore\s*\(", r"\bconfigureStore\s*\(", r"\buseReducer\s*\(", r"<Provider\b", r"\bconnect\s*\("),
    ),
    Rule(
        id="react-native.hooks",
        category=Category.STRENGTH,
        message="React Hooks for clearer, simpler components",
        patterns=(r"\buseState\s*\(", r"\buseEffect\s*\(", r"\buseCallback\s*\(", r"\buseMemo\s*\("),
    ),
    Rule(
        id="react-native.typescript",
        category=Category.STRENGTH,
        message="TypeScript for static type checking",
        patterns=(r"\.tsx?$",),
        exclude=(r"\.d\.ts$",),
        extensions=TS,
        target="path",
    ),
    Rule(
        id="react-native.tests",
        category=Category.STRENGTH,
        message="Tests for components and functions",
        patterns=(r"\b(?:test|it|describe)\s*\(\s*['\"`]", r"\bexpect\s*\("),
    ),
    Rule(
        id="react-native.navigation",
        category=Category.STRENGTH,
        message="React Navigation to organize the app structure",
        patterns=(r"\bcreateStackNavigator\b", r"\bcreateBottomTabNavigator\b", r"\bcreateNativeStackNavigator\b", r"\bNavigationContainer\b"),
    ),
    BUILD_TOOLS,
    DOCUMENTATION,
)


WEAKNESSES = (
    Rule(
        id="react-native.large_components",
        category=Category.WEAKNESS,
        message="Very large components that should be split up ({count} found)",
        probe="long_functions",
        threshold=300,
    ),
    Rule(
        id="react-native.console_logging",
        category=Category.WEAKNESS,
        message="Excessive console logging left in production code",
        patterns=(r"\bconsole\.(?:log|warn|error)\s*\(",),
        min_occurrences=10,
    ),
    Rule(
        id="react-native.inline_styles",
        category=Category.WEAKNESS,
        message="Heavy use of inline styles instead of StyleSheet",
        patterns=(r"\bstyle=\{\{",),
        min_occurrences=20,
    ),
    missing_comments(0.1),
    DUPLICATION,
)


PERFORMANCE_RULES = (
    Rule(
        id="react-native.inline_handlers",
        category=Category.PERFORMANCE,
        message="Functions created inside render, recreated on every update",
        patterns=(r"\bon[A-Z]\w*=\{\s*(?:\([^)]*\)|\w+)\s*=>",),
        min_occurrences=5,
    ),
    Rule(
        id="react-native.no_memoized_components",
        category=Category.PERFORMANCE,
        message="Class components without PureComponent or React.memo to skip needless renders",
        patterns=(r"\bextends\s+(?:React\.)?Component\b",),
        exclude=(r"\bPureComponent\b", r"\bReact\.memo\b", r"\bmemo\s*\(", r"\bshouldComponentUpdate\b"),
    ),
    Rule(
        id="react-native.scrollview_lists",
        category=Category.PERFORMANCE,
        message="ScrollView used instead of FlatList for long lists",
        patterns=(r"<ScrollView\b",),
        exclude=(r"<FlatList\b", r"<SectionList\b", r"<VirtualizedList\b"),
        min_occurrences=5,
    ),
    Rule(
        id="react-native.no_memoized_callbacks",
        category=Category.PERFORMANCE,
        message="Stateful components without useCallback or useMemo",
        patterns=(r"\buseState\s*\(",),
        exclude=(r"\buseCallback\s*\(", r"\buseMemo\s*\("),
        min_occurrences=5,
    ),
    Rule(
        id="react-native.setstate_in_loop",
        category=Category.PERFORMANCE,
        message="setState called inside loops",
        patterns=(r"\b(?:for|while)\s*\([^)]*\)\s*\{[^}]*\b(?:this\.)?set[A-Z]?\w*State\s*\(", r"\.forEach\s*\([^)]*=>\s*\{?[^}]*\bsetState\s*\("),
    ),
    large_files(),
)


MEMORY_RULES = (
    Rule(
        id="react-native.listener_leak",
        category=Category.MEMORY,
        message="Event listeners that are never removed",
        patterns=(r"\baddEventListener\s*\(", r"\baddListener\s*\("),
        exclude=(r"\bremoveEventListener\s*\(", r"\.remove\s*\(\s*\)", r"\bremoveListener\s*\("),
    ),
    Rule(
        id="react-native.bundled_images",
        category=Category.MEMORY,
        message="Many bundled images loaded without size optimization",
        patterns=(r"source=\{require\(\s*['\"][^'\"]+\.(?:png|jpe?g|gif)['\"]\s*\)\}",),
        min_occurrences=10,
    ),
    Rule(
        id="react-native.effect_without_cleanup",
        category=Category.MEMORY,
        message="useEffect subscriptions without a cleanup function",
        patterns=(r"\buseEffect\s*\(",),
        require=(r"\bsetInterval\s*\(", r"\baddEventListener\s*\(", r"\.subscribe\s*\("),
        exclude=(r"return\s*\(\s*\)\s*=>", r"\breturn\s+function\b", r"\bclearInterval\s*\("),
    ),
    Rule(
        id="react-native.unsubscribed_observables",
        category=Category.MEMORY,
        message="Observable subscriptions (e.g. RxJS) that are never unsubscribed",
        patterns=(r"\.subscribe\s*\(",),
        exclude=(r"\bunsubscribe\b",),
    ),
)


BATTERY_RULES = (
    Rule(
        id="react-native.location",
        category=Category.BATTERY,
        message="Continuous location tracking that drains the battery",
        patterns=(r"\bgetCurrentPosition\s*\(", r"\bwatchPosition\s*\(", r"\bGeolocation\b"),
    ),
    Rule(
        id="react-native.intervals",
        category=Category.BATTERY,
        message="Heavy use of setInterval that drains the battery",
        patterns=(r"\bsetInterval\s*\(",),
        min_occurrences=3,
    ),
    Rule(
        id="react-native.chatty_network",
        category=Category.BATTERY,
        message="Frequent network calls that affect battery life",
        patterns=(r"\bfetch\s*\(", r"\baxios(?:\.\w+)?\s*\(", r"\$\.ajax\s*\("),
        min_occurrences=10,
    ),
    Rule(
        id="react-native.background_tasks",
        category=Category.BATTERY,
        message="Background tasks without battery-aware scheduling",
        patterns=(r"\bBackgroundFetch\b", r"\bregisterHeadlessTask\b", r"\bHeadlessJsTask\b", r"\bBackgroundTimer\b"),
    ),
)


SECURITY_RULES = (
    Rule(
        id="react-native.hardcoded_secrets",
        category=Category.SECURITY,
        message="Sensitive values (API keys, passwords) stored directly in the code",
        patterns=(r"""\b[A-Z_]*(?:API_KEY|SECRET|PASSWORD|TOKEN)[A-Z_]*\s*[=:]\s*['"`][^'"`\s]+""",),
        exclude=(r"\bprocess\.env\b", r"react-native-config", r"from\s+['\"]@env['\"]"),
    ),
    Rule(
        id="react-native.eval",
        category=Category.SECURITY,
        message="Use of eval() or equivalent dynamic code execution",
        patterns=(r"\beval\s*\(", r"\bnew Function\s*\("),
    ),
    Rule(
        id="react-native.unhandled_requests",
        category=Category.SECURITY,
        message="Network requests without validation or error handling",
        patterns=(r"\bfetch\s*\(", r"\baxios\.(?:get|post|put|delete)\s*\("),
        exclude=(r"\bcatch\b",),
    ),
    Rule(
        id="react-native.webview",
        category=Category.SECURITY,
        message="WebView without origin restrictions",
        patterns=(r"<WebView\b",),
        exclude=(r"\boriginWhitelist\b",),
    ),
)


TABLE = VariantTable(
    tag="react-native",
    rules=(*STRENGTHS, *WEAKNESSES, *PERFORMANCE_RULES, *MEMORY_RULES, *BATTERY_RULES, *SECURITY_RULES),
    extensions=JS,
    config_extensions=(".json",) + DOC_EXTENSIONS,
    names=BUILD_FILE_NAMES,
)
