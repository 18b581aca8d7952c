"""
Native Android rule table (Java and Kotlin, plus XML layouts and resources).
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

CODE = (".java", ".kt")
KOTLIN = (".kt",)
XML = (".xml",)


STRENGTHS = (
    Rule(
        id="native-android.architecture",
        category=Category.STRENGTH,
        message="MVVM or MVP architecture separating logic from the UI",
        patterns=(r"\bViewModel\b", r"\bLiveData\b", r"\bPresenter\b"),
    ),
    Rule(
        id="native-android.dependency_injection",
        category=Category.STRENGTH,
        message="Dependency injection for testability and maintenance",
        patterns=(r"@Inject\b", r"\bDagger\w*", r"@HiltAndroidApp|@AndroidEntryPoint", r"\bkoin\b|\bKoin\w*"),
    ),
    Rule(
        id="native-android.compose",
        category=Category.STRENGTH,
        message="Jetpack Compose for modern UI",
        patterns=(r"@Composable\b", r"\bsetContent\s*\{"),
        extensions=KOTLIN,
    ),
    Rule(
        id="native-android.room",
        category=Category.STRENGTH,
        message="Room for safe database access",
        patterns=(r"@Entity\b", r"@Dao\b", r"\bRoomDatabase\b"),
    ),
    Rule(
        id="native-android.coroutines",
        category=Category.STRENGTH,
        message="Kotlin coroutines for asynchronous work",
        patterns=(r"\bsuspend\s+fun\b", r"\bcoroutineScope\b", r"\b(?:launch|async)\s*\{", r"\bviewModelScope\b"),
        extensions=KOTLIN,
    ),
    TESTS,
    BUILD_TOOLS,
    DOCUMENTATION,
)


WEAKNESSES = (
    Rule(
        id="native-android.raw_threads",
        category=Category.WEAKNESS,
        message="Raw threads used instead of coroutines or RxJava",
        patterns=(r"\bnew\s+Thread\s*\(", r"\bRunnable\b", r"\bnew\s+Handler\s*\("),
        exclude=(r"(?i)coroutine",),
    ),
    missing_comments(0.1),
    Rule(
        id="native-android.no_view_binding",
        category=Category.WEAKNESS,
        message="findViewById used instead of ViewBinding or DataBinding",
        patterns=(r"\bfindViewById\s*[<(]",),
        exclude=(r"(?i)binding",),
    ),
    Rule(
        id="native-android.hardcoded_strings",
        category=Category.WEAKNESS,
        message="Hardcoded UI text instead of string resources",
        patterns=(r'android:text\s*=\s*"[^@"][^"]*"', r'\bsetText\s*\(\s*"[^"]+"'),
        extensions=CODE + XML,
    ),
    LONG_FUNCTIONS,
    DUPLICATION,
)


PERFORMANCE_RULES = (
    Rule(
        id="native-android.no_view_holder",
        category=Category.PERFORMANCE,
        message="ListView or RecyclerView without the ViewHolder pattern",
        patterns=(r"\bListView\b", r"\bRecyclerView\b"),
        exclude=(r"\bViewHolder\b", r"\bonBindViewHolder\b"),
    ),
    Rule(
        id="native-android.ui_thread_work",
        category=Category.PERFORMANCE,
        message="Expensive work (bitmaps, database, disk) on the UI thread",
        patterns=(r"\bBitmapFactory\.decode\w*\s*\(", r"\bSQLiteDatabase\b", r"\.rawQuery\s*\(", r"\bFileInputStream\s*\("),
        require=(r"\brunOnUiThread\b", r"\bonDraw\s*\(", r"\bonCreateView\s*\("),
    ),
    Rule(
        id="native-android.deep_layouts",
        category=Category.PERFORMANCE,
        message="Deeply nested view hierarchies in layouts",
        patterns=(r'android:layout_width="match_parent"[\s\S]{0,100}<LinearLayout', r"<RelativeLayout[\s\S]{0,100}<LinearLayout"),
        require=(r"<LinearLayout\b", r"<RelativeLayout\b"),
        extensions=XML,
    ),
    Rule(
        id="native-android.no_image_library",
        category=Category.PERFORMANCE,
        message="Images loaded without an efficient library such as Glide or Coil",
        patterns=(r"\bsetImageBitmap\s*\(", r"\bsetImageResource\s*\("),
        exclude=(r"\bGlide\b", r"\bPicasso\b", r"\bcoil\b|\bCoil\b"),
    ),
)


MEMORY_RULES = (
    Rule(
        id="native-android.static_context",
        category=Category.MEMORY,
        message="Static references to Context or Activity that can leak memory",
        patterns=(r"\bstatic\b[^\n;=(]{0,50}\b(?:Context|Activity)\b",),
        extensions=(".java",),
    ),
    Rule(
        id="native-android.unclosed_streams",
        category=Category.MEMORY,
        message="Cursors or streams that are never closed",
        patterns=(r"\bCursor\b", r"\bInputStream\b", r"\bOutputStream\b"),
        exclude=(r"\.close\s*\(", r"\.use\s*\{", r"\brecycle\s*\("),
    ),
    Rule(
        id="native-android.release_logging",
        category=Category.MEMORY,
        message="Verbose logging left in release builds",
        patterns=(r"\bLog\.[dv]\s*\(", r"\bSystem\.out\.print", r"\.printStackTrace\s*\("),
        min_occurrences=10,
    ),
    Rule(
        id="native-android.full_size_bitmaps",
        category=Category.MEMORY,
        message="Large images decoded without sampling or scaling",
        patterns=(r"\bBitmapFactory\.decode\w*\s*\(",),
        exclude=(r"\binSampleSize\b", r"\bcreateScaledBitmap\b"),
    ),
)


BATTERY_RULES = (
    Rule(
        id="native-android.location",
        category=Category.BATTERY,
        message="Continuous location updates that drain the battery",
        patterns=(r"\bLocationManager\b", r"\bFusedLocationProviderClient\b", r"\brequestLocationUpdates\s*\("),
    ),
    Rule(
        id="native-android.wake_locks",
        category=Category.BATTERY,
        message="WakeLocks that keep the device from sleeping",
        patterns=(r"\bWakeLock\b", r"\bnewWakeLock\s*\("),
    ),
    Rule(
        id="native-android.frequent_alarms",
        category=Category.BATTERY,
        message="AlarmManager with short repeating intervals",
        patterns=(r"AlarmManager\.INTERVAL_FIFTEEN_MINUTES", r"AlarmManager\.RTC_WAKEUP", r"\.setRepeating\s*\("),
    ),
    Rule(
        id="native-android.network_polling",
        category=Category.BATTERY,
        message="Repeated network requests in the background",
        patterns=(r"\bRetrofit\b", r"\bOkHttpClient\b", r"\bHttpURLConnection\b", r"\bVolley\b"),
        require=(r"\bTimer\b", r"\bpostDelayed\s*\(", r"\bscheduleAtFixedRate\s*\("),
    ),
)


SECURITY_RULES = (
    Rule(
        id="native-android.raw_sql",
        category=Category.SECURITY,
        message="Raw SQL queries that may allow SQL injection",
        patterns=(r"\.rawQuery\s*\(", r"\.execSQL\s*\("),
    ),
    Rule(
        id="native-android.plain_preferences",
        category=Category.SECURITY,
        message="Data written to SharedPreferences without encryption",
        patterns=(r"\bSharedPreferences\.Editor\b", r"\.edit\(\)\s*\.put\w+\s*\("),
        exclude=(r"\bEncryptedSharedPreferences\b", r"(?i)encrypt"),
    ),
    Rule(
        id="native-android.cleartext_http",
        category=Category.SECURITY,
        message="HTTP used instead of HTTPS",
        patterns=(CLEARTEXT_URL, r'android:usesCleartextTraffic="true"'),
        extensions=CODE + XML,
    ),
    Rule(
        id="native-android.insecure_webview",
        category=Category.SECURITY,
        message="WebView configured in a way that allows XSS or code execution",
        patterns=(r"\bsetJavaScriptEnabled\s*\(\s*true", r"\baddJavascriptInterface\s*\(", r"javaScriptEnabled\s*=\s*true"),
        require=(r"\bWebView\b",),
    ),
)


TABLE = VariantTable(
    tag="native-android",
    rules=(*STRENGTHS, *WEAKNESSES, *PERFORMANCE_RULES, *MEMORY_RULES, *BATTERY_RULES, *SECURITY_RULES),
    extensions=CODE,
    config_extensions=XML + (".gradle", ".kts", ".properties") + DOC_EXTENSIONS,
    names=BUILD_FILE_NAMES,
)
