"""
CodePulse Variant Rule Tables

One data-only table per recognized technology plus the default fallback:
- flutter, react-native, xamarin, native-android, native-ios
- default (also used for "unknown" and any unrecognized tag)
"""

from ...errors import RuleConfigError
from ...schemas import Category
from . import default, flutter, native_android, native_ios, react_native, xamarin
from .common import VariantTable

DEFAULT_TAG = "default"

VARIANT_TABLES: dict[str, VariantTable] = {
    table.tag: table
    for table in (
        flutter.TABLE,
        react_native.TABLE,
        xamarin.TABLE,
        native_android.TABLE,
        native_ios.TABLE,
        default.TABLE,
    )
}


def get_table(tag: str | None) -> VariantTable:
    """Table for a variant tag. Unknown tags fall back to the default table."""
    return VARIANT_TABLES.get(tag or DEFAULT_TAG, VARIANT_TABLES[DEFAULT_TAG])


def _check_tables(tables: dict[str, VariantTable]) -> None:
    """Every table must cover every category and keep rule ids unique."""
    for tag, table in tables.items():
        missing = set(Category) - table.categories()
        if missing:
            names = ", ".join(sorted(category.value for category in missing))
            raise RuleConfigError(f"Variant table {tag} has no rules for: {names}")

        ids = [rule.id for rule in table.rules]
        duplicates = {rule_id for rule_id in ids if ids.count(rule_id) > 1}
        if duplicates:
            raise RuleConfigError(f"Variant table {tag} repeats rule ids: {', '.join(sorted(duplicates))}")


_check_tables(VARIANT_TABLES)


__all__ = [
    "DEFAULT_TAG",
    "VARIANT_TABLES",
    "VariantTable",
    "get_table",
]
