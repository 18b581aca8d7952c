import pytest

from codepulse.engine import VARIANT_TABLES, get_table
from codepulse.engine.variants import _check_tables
from codepulse.engine.variants.common import VariantTable, missing_comments
from codepulse.errors import RuleConfigError
from codepulse.schemas import Category


def test_every_recognized_variant_has_a_table():
    assert set(VARIANT_TABLES) == {"flutter", "react-native", "xamarin", "native-android", "native-ios", "default"}


@pytest.mark.parametrize("tag", sorted(VARIANT_TABLES))
def test_tables_cover_every_category(tag):
    assert VARIANT_TABLES[tag].categories() == set(Category)


@pytest.mark.parametrize("tag", sorted(VARIANT_TABLES))
def test_rule_ids_are_unique(tag):
    ids = [rule.id for rule in VARIANT_TABLES[tag].rules]
    assert len(ids) == len(set(ids))


@pytest.mark.parametrize("tag", [None, "", "unknown", "cobol"])
def test_unrecognized_tags_fall_back_to_default(tag):
    assert get_table(tag).tag == "default"


def test_load_extensions_include_rule_specific_extensions():
    flutter = get_table("flutter")
    assert ".dart" in flutter.load_extensions
    assert "pubspec.yaml" in flutter.load_names


def test_incomplete_table_is_rejected():
    only_weakness = VariantTable(tag="broken", rules=(missing_comments(0.1),), extensions=(".js",))

    with pytest.raises(RuleConfigError):
        _check_tables({"broken": only_weakness})
