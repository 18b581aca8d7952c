"""
Variant Classifier for CodePulse

Looks at marker files in a checkout to decide which rule table applies.
Never raises: anything unreadable or unrecognized is "unknown", and the
dispatcher maps "unknown" to the default table.
"""

import json
import logging
from pathlib import Path

logger = logging.getLogger(__name__)


UNKNOWN = "unknown"

FLUTTER = "flutter"
REACT_NATIVE = "react-native"
XAMARIN = "xamarin"
NATIVE_ANDROID = "native-android"
NATIVE_IOS = "native-ios"


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8", errors="ignore")
    except OSError as e:
        logger.warning(f"Could not read marker file {path}: {e}")
        return ""


def _has_react_native_dependency(package_json: Path) -> bool:
    try:
        manifest = json.loads(_read_text(package_json) or "{}")
    except json.JSONDecodeError:
        logger.warning(f"Malformed package.json at {package_json}")
        return False
    if not isinstance(manifest, dict):
        return False

    for section in ("dependencies", "devDependencies", "peerDependencies"):
        deps = manifest.get(section)
        if isinstance(deps, dict) and "react-native" in deps:
            return True
    return False


def _shallow_glob(root: Path, pattern: str) -> list[Path]:
    """Matches at the root and one directory down (solution layouts)."""
    return sorted(root.glob(pattern)) + sorted(root.glob(f"*/{pattern}"))


def classify(path: str | Path) -> str:
    """
    Detect the technology variant of a checkout.

    Checked in order: pubspec.yaml (Flutter), package.json depending on
    react-native, a .csproj mentioning Xamarin, app/build.gradle
    (native Android), a .xcodeproj bundle (native iOS).

    Returns:
        Variant tag, or UNKNOWN when no marker matches
    """
    root = Path(path)
    try:
        if not root.is_dir():
            return UNKNOWN

        if (root / "pubspec.yaml").is_file():
            return FLUTTER

        package_json = root / "package.json"
        if package_json.is_file() and _has_react_native_dependency(package_json):
            return REACT_NATIVE

        for csproj in _shallow_glob(root, "*.csproj"):
            if "Xamarin" in _read_text(csproj):
                return XAMARIN

        if (root / "app" / "build.gradle").is_file() or (root / "app" / "build.gradle.kts").is_file():
            return NATIVE_ANDROID

        if any(candidate.is_dir() for candidate in _shallow_glob(root, "*.xcodeproj")):
            return NATIVE_IOS
    except OSError as e:
        logger.warning(f"Variant detection failed for {root}: {e}")

    return UNKNOWN
