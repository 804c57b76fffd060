import pytest

from reflector.errors import ScanError
from reflector.parsing.scanners import Cursor, split_trailing_identifier, trim_comments


def test_identifier_and_expected_error():
    cursor = Cursor("  mCount = 5")
    assert cursor.identifier() == "mCount"
    assert cursor.text == " = 5"

    with pytest.raises(ScanError, match="Expected `identifier`"):
        Cursor("= 5").identifier()


def test_type_scan_handles_templates_qualifiers_and_trailing_tokens():
    cursor = Cursor("const std::map<std::string, std::vector<int>> & Lookup(int key)")
    assert cursor.type() == "const std::map<std::string, std::vector<int>> &"
    assert cursor.identifier() == "Lookup"

    cursor = Cursor("char const* Name()")
    assert cursor.type() == "char const*"


def test_type_scan_rejects_unbalanced_closer():
    with pytest.raises(ScanError, match="Unbalanced"):
        Cursor("int> x").type()


def test_expression_stops_at_top_level_terminators():
    cursor = Cursor("foo(a, b), next")
    assert cursor.expression() == "foo(a, b)"
    assert cursor.text == ", next"

    assert Cursor("std::array<int, 3>{1, 2, 3};").expression() == "std::array<int, 3>{1, 2, 3}"
    assert Cursor("1 << 4;").expression() == "1 << 4"
    assert Cursor("a > b;").expression() == "a > b"
    assert Cursor("std::vector<std::vector<int>>{};").expression() == "std::vector<std::vector<int>>{}"
    assert Cursor("\"a;b\", 2").expression() == "\"a;b\""


def test_expression_rejects_unbalanced_brackets():
    with pytest.raises(ScanError, match="Unbalanced"):
        Cursor("foo(1, 2").expression()
    with pytest.raises(ScanError, match="Unbalanced"):
        Cursor("x]").expression()


def test_swallow_keyword_requires_word_boundary():
    cursor = Cursor("constexpr int")
    assert not cursor.swallow_keyword("const")
    assert cursor.swallow_keyword("constexpr")
    assert cursor.text == " int"


def test_expect_names_the_missing_token():
    cursor = Cursor("  ; rest")
    cursor.expect(";")
    with pytest.raises(ScanError, match="Expected `\\{`"):
        cursor.expect("{")


def test_balanced_is_quote_aware():
    cursor = Cursor('(int a = ")", int b) const')
    assert cursor.balanced("(") == 'int a = ")", int b'
    assert cursor.text == " const"


def test_helpers():
    assert trim_comments("  /* a */ int x; ") == "int x; "
    assert trim_comments("// all comment") == ""
    assert split_trailing_identifier("std::vector<int> mItems ") == ("std::vector<int>", "mItems")
