"""
Xamarin rule table (C# plus XAML views and project files).
"""

from ...schemas import Category
from ..rules import Rule
from .common import (
    BUILD_FILE_NAMES,
    CLEARTEXT_URL,
    DOC_EXTENSIONS,
    DOCUMENTATION,
    DUPLICATION,
    LONG_FUNCTIONS,
    VariantTable,
    missing_comments,
)

CSHARP = (".cs",)
XAML = (".xaml",)
CSHARP_AND_XAML = CSHARP + XAML


STRENGTHS = (
    Rule(
        id="xamarin.mvvm",
        category=Category.STRENGTH,
        message="MVVM pattern separating logic from the UI",
        patterns=(r"\b\w+ViewModel\b", r"\bINotifyPropertyChanged\b", r"\bPropertyChanged\b"),
        extensions=CSHARP,
    ),
    Rule(
        id="xamarin.dependency_injection",
        category=Category.STRENGTH,
        message="Dependency injection for testability and maintenance",
        patterns=(r"\bIServiceProvider\b", r"\bServiceCollection\b", r"\bDependencyService\b"),
        extensions=CSHARP,
    ),
    Rule(
        id="xamarin.tests",
        category=Category.STRENGTH,
        message="Unit tests",
        patterns=(r"\[TestFixture\]", r"\[Test\]", r"\[Fact\]", r"\bAssert\.\w+\s*\(", r"\bMock<"),
        extensions=CSHARP,
    ),
    Rule(
        id="xamarin.platform_specifics",
        category=Category.STRENGTH,
        message="Platform-specific handling for a native experience on each OS",
        patterns=(r"\bOnPlatform\b", r"\bDevice\.RuntimePlatform\b", r"#if\s+__IOS__", r"#if\s+__ANDROID__"),
        extensions=CSHARP_AND_XAML,
    ),
    Rule(
        id="xamarin.project_files",
        category=Category.STRENGTH,
        message="Build and packaging tooling for the project",
        patterns=(r"\.(?:csproj|sln)$",),
        extensions=(".csproj", ".sln"),
        target="path",
    ),
    DOCUMENTATION,
)


WEAKNESSES = (
    Rule(
        id="xamarin.magic_strings",
        category=Category.WEAKNESS,
        message="Magic codes in string literals that make maintenance harder",
        patterns=(r'"[A-Z0-9]{10,}"',),
        extensions=CSHARP,
    ),
    missing_comments(0.1),
    LONG_FUNCTIONS,
    DUPLICATION,
)


PERFORMANCE_RULES = (
    Rule(
        id="xamarin.main_thread_dispatch",
        category=Category.PERFORMANCE,
        message="Heavy use of main-thread dispatch that can stall the UI",
        patterns=(r"\bDevice\.BeginInvokeOnMainThread\s*\(", r"\bMainThread\.BeginInvokeOnMainThread\s*\("),
        extensions=CSHARP,
        min_occurrences=5,
    ),
    Rule(
        id="xamarin.listview",
        category=Category.PERFORMANCE,
        message="ListView used instead of CollectionView for lists",
        patterns=(r"<ListView\b", r"\bnew\s+ListView\s*\("),
        exclude=(r"\bCollectionView\b",),
        extensions=CSHARP_AND_XAML,
    ),
    Rule(
        id="xamarin.no_image_cache",
        category=Category.PERFORMANCE,
        message="Images loaded without caching (e.g. FFImageLoading)",
        patterns=(r"<Image\b", r"\bnew\s+Image\s*[({]"),
        exclude=(r"\bCachedImage\b", r"\bFFImageLoading\b"),
        extensions=CSHARP_AND_XAML,
    ),
    Rule(
        id="xamarin.sync_network",
        category=Category.PERFORMANCE,
        message="Synchronous network calls that can freeze the UI",
        patterns=(r"\bHttpClient\b", r"\bWebClient\b"),
        exclude=(r"\bawait\b", r"\basync\b"),
        extensions=CSHARP,
    ),
)


MEMORY_RULES = (
    Rule(
        id="xamarin.event_handler_leak",
        category=Category.MEMORY,
        message="Event handlers that are never unsubscribed",
        patterns=(r"\.\w+\s*\+=\s*(?!\d)[\w(]",),
        exclude=(r"-=",),
        extensions=CSHARP,
    ),
    Rule(
        id="xamarin.undisposed_resources",
        category=Category.MEMORY,
        message="Disposable resources not released through Dispose or using",
        patterns=(r"\bIDisposable\b",),
        exclude=(r"\.Dispose\s*\(\s*\)", r"\busing\s*[({]|\busing\s+var\b"),
        extensions=CSHARP,
    ),
    Rule(
        id="xamarin.static_collections",
        category=Category.MEMORY,
        message="Static collections that can grow and leak memory",
        patterns=(r"\bstatic\s+(?:readonly\s+)?(?:List|Dictionary|ObservableCollection)\b",),
        extensions=CSHARP,
    ),
    Rule(
        id="xamarin.undisposed_bitmaps",
        category=Category.MEMORY,
        message="Large image resources that are never disposed",
        patterns=(r"\bBitmapImage\b", r"\bSKBitmap\b"),
        exclude=(r"\bDispose\b",),
        extensions=CSHARP,
    ),
)


BATTERY_RULES = (
    Rule(
        id="xamarin.location",
        category=Category.BATTERY,
        message="Continuous location updates that drain the battery",
        patterns=(r"\bGetLastKnownLocation\w*\b", r"\bRequestLocationUpdates\b", r"\bCLLocationManager\b", r"\bGeolocation\.GetLocationAsync\b"),
        extensions=CSHARP,
    ),
    Rule(
        id="xamarin.short_timers",
        category=Category.BATTERY,
        message="Timers with short intervals that drain the battery",
        patterns=(r"\bnew\s+Timer\s*\(\s*\d{1,3}\s*\)", r"\bInterval\s*=\s*\d{1,3}\b"),
        extensions=CSHARP,
    ),
    Rule(
        id="xamarin.animations",
        category=Category.BATTERY,
        message="Heavy use of animations that affects battery life",
        patterns=(r"\b(?:FadeTo|TranslateTo|ScaleTo|RotateTo|LayoutTo)\s*\(", r"\bnew\s+Animation\s*\("),
        extensions=CSHARP,
        min_occurrences=10,
    ),
    Rule(
        id="xamarin.busy_loops",
        category=Category.BATTERY,
        message="Repeated tasks with very short delays",
        patterns=(r"\bThread\.Sleep\s*\(\s*\d{1,3}\s*\)", r"\bTask\.Delay\s*\(\s*\d{1,3}\s*\)"),
        extensions=CSHARP,
    ),
)


SECURITY_RULES = (
    Rule(
        id="xamarin.plaintext_secrets",
        category=Category.SECURITY,
        message="Sensitive data kept as plain text instead of SecureStorage",
        patterns=(r'(?i)\b(?:password|api_?key|secret|token)\w*\s*=\s*"',),
        exclude=(r"\bSecureStorage\b", r"(?i)encrypt"),
        extensions=CSHARP,
    ),
    Rule(
        id="xamarin.cleartext_http",
        category=Category.SECURITY,
        message="HTTP used instead of HTTPS",
        patterns=(CLEARTEXT_URL,),
        extensions=CSHARP,
    ),
    Rule(
        id="xamarin.raw_sql",
        category=Category.SECURITY,
        message="SQL built from strings (possible SQL injection)",
        patterns=(r'\b(?:ExecuteQuery|rawQuery|Execute|Query<\w+>)\s*\(\s*\$?"[^"]*(?:\{|"\s*\+)',),
        extensions=CSHARP,
    ),
    Rule(
        id="xamarin.no_certificate_pinning",
        category=Category.SECURITY,
        message="HTTP clients without certificate pinning (man-in-the-middle risk)",
        patterns=(r"\bnew\s+HttpClient\s*\(",),
        exclude=(r"\bServicePointManager\b", r"\bServerCertificateCustomValidationCallback\b", r"\bTrustManager\b"),
        extensions=CSHARP,
    ),
)


TABLE = VariantTable(
    tag="xamarin",
    rules=(*STRENGTHS, *WEAKNESSES, *PERFORMANCE_RULES, *MEMORY_RULES, *BATTERY_RULES, *SECURITY_RULES),
    extensions=CSHARP,
    config_extensions=XAML + (".csproj", ".sln", ".json") + DOC_EXTENSIONS,
    names=BUILD_FILE_NAMES,
)
