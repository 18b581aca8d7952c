"""
Flutter rule table.

Dart sources plus pubspec.yaml, where dependency choices (flutter_bloc,
provider, cached_network_image) are themselves signals.
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
    VariantTable,
    large_files,
    missing_comments,
)

DART = (".dart",)
DART_AND_PUBSPEC = (".dart", ".yaml")

# Layout widgets whose deep single-child chains make build methods unreadable
_LAYOUT = r"(?:Container|Column|Row|Stack|Padding|Center|SizedBox|Expanded)"


STRENGTHS = (
    Rule(
        id="flutter.bloc",
        category=Category.STRENGTH,
        message="BLoC pattern for state management",
        patterns=(r"\bBloc(?:Provider|Builder|Listener|Consumer)\b", r"^\s*flutter_bloc\s*:"),
        extensions=DART_AND_PUBSPEC,
    ),
    Rule(
        id="flutter.provider",
        category=Category.STRENGTH,
        message="Provider for application state",
        patterns=(r"\bChangeNotifierProvider\b", r"\bConsumer<", r"^\s*provider\s*:"),
        extensions=DART_AND_PUBSPEC,
    ),
    Rule(
        id="flutter.tests",
        category=Category.STRENGTH,
        message="Unit and widget tests",
        patterns=(r"\btestWidgets\s*\(", r"\btest\s*\(\s*['\"]", r"\bgroup\s*\(\s*['\"]"),
        extensions=DART,
    ),
    Rule(
        id="flutter.feature_structure",
        category=Category.STRENGTH,
        message="Organized, feature-oriented file structure under lib/",
        patterns=(r"^lib/(?:models|views|screens|widgets|services|utils|providers|blocs)/",),
        extensions=DART,
        target="path",
        distinct=True,
        min_occurrences=3,
    ),
    Rule(
        id="flutter.custom_widgets",
        category=Category.STRENGTH,
        message="Reusable custom widgets",
        patterns=(r"\bextends\s+StatelessWidget\b", r"\bextends\s+StatefulWidget\b"),
        extensions=DART,
        min_occurrences=5,
    ),
    Rule(
        id="flutter.localization",
        category=Category.STRENGTH,
        message="Localization and multi-language support",
        patterns=(r"\blocalizationsDelegates\b", r"^\s*flutter_localizations\s*:"),
        extensions=DART_AND_PUBSPEC,
    ),
    BUILD_TOOLS,
    DOCUMENTATION,
)


WEAKNESSES = (
    Rule(
        id="flutter.widget_nesting",
        category=Category.WEAKNESS,
        message="Excessive widget nesting that hurts readability and maintenance",
        patterns=(rf"{_LAYOUT}\(\s*child:\s*{_LAYOUT}\(\s*child:\s*{_LAYOUT}\(\s*child:\s*{_LAYOUT}\(\s*child:\s*{_LAYOUT}\(",),
        extensions=DART,
    ),
    missing_comments(0.1),
    LONG_FUNCTIONS,
    DUPLICATION,
)


PERFORMANCE_RULES = (
    Rule(
        id="flutter.setstate_in_loop",
        category=Category.PERFORMANCE,
        message="setState called inside loops",
        patterns=(r"\bfor\s*\([^)]*\)\s*\{[^}]*\bsetState\s*\(", r"\bsetState\s*\(\s*\(\)\s*\{[^}]*\bfor\s*\("),
        extensions=DART,
    ),
    Rule(
        id="flutter.listview_without_builder",
        category=Category.PERFORMANCE,
        message="ListView used instead of ListView.builder for dynamic lists",
        patterns=(r"\bListView\s*\(",),
        exclude=(r"\bListView\.(?:builder|separated)\b",),
        extensions=DART,
    ),
    Rule(
        id="flutter.manual_relayout",
        category=Category.PERFORMANCE,
        message="Frequent calls to markNeedsBuild or markNeedsLayout",
        patterns=(r"\bmarkNeedsBuild\s*\(", r"\bmarkNeedsLayout\s*\("),
        extensions=DART,
    ),
    Rule(
        id="flutter.network_in_scroll",
        category=Category.PERFORMANCE,
        message="Network requests made from scroll listeners",
        patterns=(r"\bhttp\.get\s*\(", r"\bfetch\w*\s*\("),
        require=(r"\bScrollController\b", r"\bonScroll\b", r"NotificationListener<ScrollNotification>"),
        extensions=DART,
    ),
    Rule(
        id="flutter.no_image_cache",
        category=Category.PERFORMANCE,
        message="Network images are not cached (cached_network_image not used)",
        patterns=(r"\bImage\.network\s*\(", r"\bNetworkImage\s*\("),
        exclude=(r"\bCachedNetworkImage\b",),
        extensions=DART,
    ),
    large_files(),
)


MEMORY_RULES = (
    Rule(
        id="flutter.listener_leak",
        category=Category.MEMORY,
        message="Listeners that are never removed in dispose",
        patterns=(r"\.addListener\s*\(",),
        exclude=(r"\.removeListener\s*\(",),
        extensions=DART,
    ),
    Rule(
        id="flutter.heavy_caching",
        category=Category.MEMORY,
        message="Heavy in-memory caching that may use excessive memory",
        patterns=(r"\b[cC]ache[ds]?\b",),
        extensions=DART,
        min_occurrences=10,
    ),
    Rule(
        id="flutter.missing_dispose",
        category=Category.MEMORY,
        message="State objects that override initState without dispose",
        patterns=(r"\bvoid\s+initState\s*\(",),
        exclude=(r"\bvoid\s+dispose\s*\(",),
        extensions=DART,
    ),
    Rule(
        id="flutter.unclosed_resources",
        category=Category.MEMORY,
        message="External resources (camera, files, sockets, streams) that are never closed",
        patterns=(r"\bCameraController\s*\(", r"\bSocket\.connect\s*\(", r"\bStreamController\b", r"\bFile\s*\(.*\)\.open"),
        exclude=(r"\.close\s*\(", r"\.dispose\s*\("),
        extensions=DART,
    ),
)


BATTERY_RULES = (
    Rule(
        id="flutter.location",
        category=Category.BATTERY,
        message="Continuous location tracking that drains the battery",
        patterns=(r"\bGeolocator\b", r"\bLocationServices\b", r"\bgetCurrentPosition\s*\(", r"\bgetPositionStream\s*\("),
        extensions=DART,
    ),
    Rule(
        id="flutter.periodic_timer",
        category=Category.BATTERY,
        message="Timer.periodic without a cancel when not in use",
        patterns=(r"\bTimer\.periodic\s*\(",),
        exclude=(r"\.cancel\s*\(",),
        extensions=DART,
    ),
    Rule(
        id="flutter.polling_queries",
        category=Category.BATTERY,
        message="Repeated background database queries",
        patterns=(r"\.(?:query|rawQuery)\s*\(",),
        require=(r"\bTimer\.periodic\b", r"\bStream\.periodic\b"),
        extensions=DART,
    ),
    Rule(
        id="flutter.background_services",
        category=Category.BATTERY,
        message="Background services without battery-aware scheduling",
        patterns=(r"\bBackgroundFetch\b", r"\bWorkmanager\b", r"\bBackgroundService\b"),
        extensions=DART,
    ),
)


SECURITY_RULES = (
    Rule(
        id="flutter.unencrypted_secrets",
        category=Category.SECURITY,
        message="Sensitive data stored without encryption or FlutterSecureStorage",
        patterns=(r"(?i)\b(?:password|token|secret)\b\s*[:=]",),
        exclude=(r"(?i)encrypt", r"(?i)\bhash", r"\bFlutterSecureStorage\b"),
        extensions=DART,
    ),
    Rule(
        id="flutter.hardcoded_credentials",
        category=Category.SECURITY,
        message="Hardcoded API credentials in the code",
        patterns=(r"\bconst\s+[^\n=]*(?:API_KEY|SECRET|PASSWORD)",),
        extensions=DART,
    ),
    Rule(
        id="flutter.unvalidated_input",
        category=Category.SECURITY,
        message="Form fields without input validation",
        patterns=(r"\bTextFormField\s*\(", r"\bTextField\s*\("),
        exclude=(r"\bvalidator\s*:",),
        extensions=DART,
    ),
    Rule(
        id="flutter.webview",
        category=Category.SECURITY,
        message="WebView without restrictive JavaScript settings",
        patterns=(r"\bWebView\s*\(", r"\bWebViewController\s*\("),
        exclude=(r"JavascriptMode\.disabled", r"JavaScriptMode\.disabled"),
        extensions=DART,
    ),
    Rule(
        id="flutter.cleartext_http",
        category=Category.SECURITY,
        message="HTTP used instead of HTTPS for network traffic",
        patterns=(CLEARTEXT_URL,),
        extensions=DART,
    ),
)


TABLE = VariantTable(
    tag="flutter",
    rules=(*STRENGTHS, *WEAKNESSES, *PERFORMANCE_RULES, *MEMORY_RULES, *BATTERY_RULES, *SECURITY_RULES),
    extensions=DART,
    config_extensions=(".yaml",) + DOC_EXTENSIONS,
    names=BUILD_FILE_NAMES,
)
