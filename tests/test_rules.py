import pytest

from codepulse.engine.corpus import FileRecord
from codepulse.engine.rules import (
    ANY_FILE,
    Rule,
    comment_deficit,
    duplicate_segments,
    evaluate,
    is_satisfied,
    large_files,
    long_functions,
    mixed_indentation,
)
from codepulse.errors import RuleConfigError
from codepulse.schemas import Category


def record(path: str, content: str = "") -> FileRecord:
    name = path.rsplit("/", 1)[-1]
    extension = "." + name.rsplit(".", 1)[-1].lower() if "." in name else ""
    return FileRecord(path=path, name=name, extension=extension, content=content)


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================

def test_string_category_is_coerced():
    rule = Rule(id="r", category="security", message="m", patterns=("x",))
    assert rule.category is Category.SECURITY


@pytest.mark.parametrize("kwargs", [
    {"category": "style", "patterns": ("x",)},
    {"category": Category.SECURITY, "patterns": ("(unclosed",)},
    {"category": Category.SECURITY},
    {"category": Category.SECURITY, "probe": "no_such_probe"},
    {"category": Category.SECURITY, "patterns": ("x",), "min_occurrences": -1},
    {"category": Category.SECURITY, "patterns": ("x",), "weight": 0},
    {"category": Category.SECURITY, "patterns": ("x",), "target": "name"},
])
def test_malformed_rules_are_rejected(kwargs):
    with pytest.raises(RuleConfigError):
        Rule(id="bad", message="m", **kwargs)


def test_rule_config_error_is_not_retryable():
    assert RuleConfigError("x").retryable is False


# =============================================================================
# EVALUATION
# =============================================================================

def test_counts_every_match_across_files():
    rule = Rule(id="r", category=Category.SECURITY, message="m", patterns=(r"\beval\s*\(",))
    corpus = [record("a.js", "eval(a)\neval(b)\n"), record("b.js", "eval(c)\n"), record("c.py", "eval(d)\n")]

    assert evaluate(corpus, rule, (".js",)) == 3


def test_exclude_discards_the_whole_file():
    rule = Rule(
        id="r",
        category=Category.MEMORY,
        message="m",
        patterns=(r"addEventListener",),
        exclude=(r"removeEventListener",),
    )
    corpus = [
        record("leaky.js", "el.addEventListener('x', f)\nel.addEventListener('y', g)\n"),
        record("clean.js", "el.addEventListener('x', f)\nel.removeEventListener('x', f)\n"),
    ]

    assert evaluate(corpus, rule, (".js",)) == 2


def test_require_keeps_only_files_with_a_cosignal():
    rule = Rule(
        id="r",
        category=Category.PERFORMANCE,
        message="m",
        patterns=(r"setState\(",),
        require=(r"\bfor\s*\(",),
    )
    corpus = [
        record("loop.dart", "for (var i in items) {\n  setState(() {});\n}\n"),
        record("plain.dart", "setState(() {});\n"),
    ]

    assert evaluate(corpus, rule, (".dart",)) == 1


def test_rule_extensions_override_table_extensions():
    rule = Rule(id="r", category=Category.SECURITY, message="m", patterns=("http://",), extensions=(".xml",))
    corpus = [record("AndroidManifest.xml", "http://a"), record("Main.java", "http://b")]

    assert evaluate(corpus, rule, (".java",)) == 1


def test_path_target_with_any_file():
    rule = Rule(
        id="r",
        category=Category.STRENGTH,
        message="m",
        patterns=(r"(?:^|/)tests?/",),
        extensions=ANY_FILE,
        target="path",
    )
    corpus = [record("tests/test_app.py"), record("src/app.py"), record("test/data.json")]

    assert evaluate(corpus, rule) == 2


def test_distinct_counts_unique_matches():
    rule = Rule(
        id="r",
        category=Category.STRENGTH,
        message="m",
        patterns=(r"^(?:src|lib|models)/",),
        extensions=ANY_FILE,
        target="path",
        distinct=True,
    )
    corpus = [record("src/a.js"), record("src/b.js"), record("lib/c.js")]

    assert evaluate(corpus, rule) == 2


def test_empty_corpus_counts_zero():
    rule = Rule(id="r", category=Category.SECURITY, message="m", patterns=("x",))
    assert evaluate([], rule, (".js",)) == 0


def test_is_satisfied_thresholds():
    any_match = Rule(id="a", category=Category.SECURITY, message="m", patterns=("x",))
    at_least_five = Rule(id="b", category=Category.SECURITY, message="m", patterns=("x",), min_occurrences=5)

    assert not is_satisfied(any_match, 0)
    assert is_satisfied(any_match, 1)
    assert not is_satisfied(at_least_five, 4)
    assert is_satisfied(at_least_five, 5)


def test_render_substitutes_count():
    rule = Rule(id="r", category=Category.WEAKNESS, message="{count} long functions", patterns=("x",))
    assert rule.render(3) == "3 long functions"


def test_rules_are_immutable():
    rule = Rule(id="r", category=Category.SECURITY, message="m", patterns=("x",))
    with pytest.raises(AttributeError):
        rule.weight = 2


# =============================================================================
# PROBES
# =============================================================================

def test_comment_deficit():
    commented = record("a.js", "// explain\nlet a = 1;\n")
    bare = record("b.js", "let a = 1;\nlet b = 2;\n")

    assert comment_deficit([bare], 0.05) == 1
    assert comment_deficit([commented], 0.05) == 0
    assert comment_deficit([], 0.05) == 0


def test_long_functions_brace_languages():
    body = "\n".join(f"  x += {i};" for i in range(120))
    long_js = record("a.js", f"function big() {{\n{body}\n}}\n\nfunction small() {{\n  return 1;\n}}\n")

    assert long_functions([long_js], 100) == 1


def test_long_functions_python_indentation():
    body = "\n".join(f"    x = {i}" for i in range(120))
    source = record("a.py", f"def big():\n{body}\n\n\ndef small():\n    return 1\n")

    assert long_functions([source], 100) == 1


def test_duplicate_segments_over_threshold():
    block = (
        "const first = computeSomethingExpensive(input);\n"
        "const second = computeSomethingElse(first);\n"
        "const third = combine(first, second);\n"
    )
    duplicated = record("a.js", block * 4)
    unique = record("b.js", "\n".join(f"const value{i} = computeSomethingExpensive({i}, 'unique');" for i in range(30)))

    assert duplicate_segments([duplicated], 0.1) > 0
    assert duplicate_segments([unique], 0.1) == 0


def test_mixed_indentation():
    mixed = record("a.js", "if (a) {\n  b();\n\tc();\n}\n")
    spaces = record("b.js", "if (a) {\n  b();\n  c();\n}\n")

    assert mixed_indentation([mixed], 0.15) == 1
    assert mixed_indentation([spaces], 0.15) == 0


def test_large_files():
    assert large_files([record("a.js", "x" * 11), record("b.js", "x")], 10) == 1
