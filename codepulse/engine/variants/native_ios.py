"""
Native iOS rule table (Swift and Objective-C, plus Info.plist).
"""

from ...schemas import Category
from ..rules import Rule
from .common import (
    BUILD_FILE_NAMES,
    BUILD_TOOLS,
    CLEARTEXT_URL,
    DOC_EXTENSIONS,
    DOCUMENTATION,
    DUPLICATION,
    LONG_FUNCTIONS,
    TESTS,
    VariantTable,
    missing_comments,
)

CODE = (".swift", ".m", ".h")
SWIFT = (".swift",)
OBJC = (".m", ".h")
PLIST = (".plist",)


STRENGTHS = (
    Rule(
        id="native-ios.architecture",
        category=Category.STRENGTH,
        message="MVVM or MVC architecture separating logic from the UI",
        patterns=(r"\b\w+ViewModel\b", r"\b\w+Controller\b"),
    ),
    Rule(
        id="native-ios.swiftui",
        category=Category.STRENGTH,
        message="SwiftUI for modern UI",
        patterns=(r"^\s*import\s+SwiftUI\b", r"\bstruct\s+\w+\s*:\s*View\b"),
        extensions=SWIFT,
    ),
    Rule(
        id="native-ios.combine",
        category=Category.STRENGTH,
        message="Combine for reactive data flow",
        patterns=(r"^\s*import\s+Combine\b", r"\bAnyPublisher\b", r"@Published\b"),
        extensions=SWIFT,
    ),
    Rule(
        id="native-ios.core_data",
        category=Category.STRENGTH,
        message="Core Data for local persistence",
        patterns=(r"\bCoreData\b", r"\bNSManagedObject\b", r"\bNSPersistentContainer\b"),
    ),
    Rule(
        id="native-ios.swift_concurrency",
        category=Category.STRENGTH,
        message="Swift concurrency (async/await) for safe asynchronous code",
        patterns=(r"\bfunc\s+\w+\([^)]*\)\s*async\b", r"\bawait\s+\w", r"\bTask\s*\{"),
        extensions=SWIFT,
    ),
    TESTS,
    BUILD_TOOLS,
    DOCUMENTATION,
)


WEAKNESSES = (
    Rule(
        id="native-ios.unsafe_pointers",
        category=Category.WEAKNESS,
        message="Unsafe pointers that risk memory-management bugs",
        patterns=(r"\bUnsafe(?:Mutable)?(?:Raw)?(?:Buffer)?Pointer\b", r"\bunsafeBitCast\b"),
    ),
    missing_comments(0.1),
    Rule(
        id="native-ios.force_unwrapping",
        category=Category.WEAKNESS,
        message="Heavy force unwrapping that can crash at runtime",
        patterns=(r"[\w)\]]!(?=[.)\s,])",),
        extensions=SWIFT,
        min_occurrences=10,
    ),
    Rule(
        id="native-ios.no_localization",
        category=Category.WEAKNESS,
        message="UI text not localized",
        patterns=(r'\bText\(\s*"[^"]+"', r'\.text\s*=\s*"[^"]+"', r'\bsetTitle\(\s*"[^"]+"'),
        exclude=(r"\bNSLocalizedString\b", r"\.localized\b", r"\bLocalizedStringKey\b", r"String\(localized:"),
    ),
    LONG_FUNCTIONS,
    DUPLICATION,
)


PERFORMANCE_RULES = (
    Rule(
        id="native-ios.main_thread_work",
        category=Category.PERFORMANCE,
        message="Expensive work (data loading, image decoding) on the main thread",
        patterns=(r"\bData\(contentsOf:", r"\bUIImage\(contentsOfFile:", r"\bString\(contentsOf:"),
        require=(r"\bDispatchQueue\.main\b", r"\bviewDidLoad\b", r"\bviewWillAppear\b"),
    ),
    Rule(
        id="native-ios.no_cell_reuse",
        category=Category.PERFORMANCE,
        message="Table or collection views without cell reuse",
        patterns=(r"\bUITableView\b", r"\bUICollectionView\b"),
        exclude=(r"\bdequeueReusable\w*",),
    ),
    Rule(
        id="native-ios.no_image_cache",
        category=Category.PERFORMANCE,
        message="Images loaded without any caching",
        patterns=(r"\bUIImage\s*\(",),
        exclude=(r"\bNSCache\b", r"\bKingfisher\b", r"\bSDWebImage\b"),
    ),
    Rule(
        id="native-ios.no_lazy_loading",
        category=Category.PERFORMANCE,
        message="Image views loaded eagerly instead of lazily",
        patterns=(r"\bUIImageView\b",),
        exclude=(r"\blazy\s+var\b", r"\bURLSession\b"),
    ),
)


MEMORY_RULES = (
    Rule(
        id="native-ios.retain_cycles",
        category=Category.MEMORY,
        message="Closures capturing self strongly (possible retain cycles)",
        patterns=(r"\{\s*(?:\([^)]*\)|\w+(?:\s*,\s*\w+)*)\s+in\b[^}]*\bself\.",),
        exclude=(r"\[(?:weak|unowned)\s+self\]",),
        extensions=SWIFT,
    ),
    Rule(
        id="native-ios.observers",
        category=Category.MEMORY,
        message="NotificationCenter observers that are never removed",
        patterns=(r"\baddObserver\s*\(",),
        exclude=(r"\bremoveObserver\s*\(",),
    ),
    Rule(
        id="native-ios.no_autorelease_pool",
        category=Category.MEMORY,
        message="Large loops without an autorelease pool",
        patterns=(r"\bfor\s+\w+\s+in\s+\d+\s*\.\.[.<]\s*\d{3,}",),
        exclude=(r"\bautoreleasepool\b",),
    ),
    Rule(
        id="native-ios.manual_memory",
        category=Category.MEMORY,
        message="Objective-C allocations that are never released (no ARC)",
        patterns=(r"\[\[\w+\s+alloc\]",),
        exclude=(r"\brelease\]", r"\bautorelease\b", r"\bARC\b", r"@autoreleasepool"),
        extensions=OBJC,
    ),
)


BATTERY_RULES = (
    Rule(
        id="native-ios.location",
        category=Category.BATTERY,
        message="Location updates that are never stopped",
        patterns=(r"\bstartUpdatingLocation\s*\(",),
        exclude=(r"\bstopUpdatingLocation\b", r"\bpausesLocationUpdatesAutomatically\b"),
    ),
    Rule(
        id="native-ios.short_timers",
        category=Category.BATTERY,
        message="Repeating timers with short intervals",
        patterns=(r"Timer\.scheduledTimer\(\s*withTimeInterval:\s*0?\.\d+", r"scheduledTimerWithTimeInterval:\s*0?\.\d+"),
    ),
    Rule(
        id="native-ios.frequent_redraws",
        category=Category.BATTERY,
        message="Frequent forced UI refreshes that increase energy use",
        patterns=(r"\bsetNeedsDisplay\s*\(", r"\bsetNeedsLayout\s*\(", r"\blayoutIfNeeded\s*\("),
        min_occurrences=5,
    ),
    Rule(
        id="native-ios.background_network",
        category=Category.BATTERY,
        message="Many network requests issued in the background",
        patterns=(r"\bdataTask\s*\(", r"\buploadTask\s*\(", r"\bdownloadTask\s*\("),
        require=(r"\bDispatchQueue\.global\b", r"\bOperationQueue\b"),
    ),
)


SECURITY_RULES = (
    Rule(
        id="native-ios.secrets_in_defaults",
        category=Category.SECURITY,
        message="Sensitive data stored in UserDefaults instead of the Keychain",
        patterns=(r"(?i)\b(?:password|token|secret)\w*",),
        require=(r"\bUserDefaults\.standard\b", r"\bNSUserDefaults\b"),
    ),
    Rule(
        id="native-ios.cleartext_http",
        category=Category.SECURITY,
        message="HTTP used instead of HTTPS",
        patterns=(CLEARTEXT_URL,),
    ),
    Rule(
        id="native-ios.formatted_sql",
        category=Category.SECURITY,
        message="SQL built with string formatting (possible SQL injection)",
        patterns=(r"\bexecute(?:Query|Update)\s*\(",),
        require=(r"\bString\(format:", r"\bstringWithFormat:"),
    ),
    Rule(
        id="native-ios.ats_disabled",
        category=Category.SECURITY,
        message="App Transport Security disabled, allowing insecure connections",
        patterns=(r"<key>NSAllowsArbitraryLoads</key>\s*<true\s*/>",),
        extensions=PLIST,
    ),
)


TABLE = VariantTable(
    tag="native-ios",
    rules=(*STRENGTHS, *WEAKNESSES, *PERFORMANCE_RULES, *MEMORY_RULES, *BATTERY_RULES, *SECURITY_RULES),
    extensions=CODE,
    config_extensions=PLIST + DOC_EXTENSIONS,
    names=BUILD_FILE_NAMES,
)
