"""Tests for wasmsnip.selection — exact, regex and built-in selection."""

import pytest

from wasm_builder import BAR, FMT_WRITE, FOO, HELLO_NAMES, IMPORTED, PANIC, QUICKSILVER
from wasmsnip.errors import InvalidSelectionError, UnknownFunctionError
from wasmsnip.selection import (
    RUST_FMT_PATTERNS,
    RUST_PANICKING_PATTERNS,
    SelectionCriteria,
    builtin_patterns,
    compile_patterns,
    select_functions,
)

# -------------------------------------------------------------------------
# SelectionCriteria
# -------------------------------------------------------------------------


class TestSelectionCriteria:
    def test_defaults_empty(self) -> None:
        assert SelectionCriteria().is_empty

    def test_lists_are_frozen(self) -> None:
        funcs = ["foo"]
        criteria = SelectionCriteria(functions=funcs)
        funcs.append("bar")
        assert criteria.functions == ("foo",)

    def test_flag_makes_non_empty(self) -> None:
        assert not SelectionCriteria(snip_rust_fmt_code=True).is_empty


class TestBuiltinPatterns:
    def test_none_enabled(self) -> None:
        assert builtin_patterns(SelectionCriteria()) == []

    def test_both_enabled(self) -> None:
        criteria = SelectionCriteria(snip_rust_fmt_code=True, snip_rust_panicking_code=True)
        assert builtin_patterns(criteria) == [*RUST_FMT_PATTERNS, *RUST_PANICKING_PATTERNS]

    def test_returns_new_list(self) -> None:
        criteria = SelectionCriteria(snip_rust_fmt_code=True)
        first = builtin_patterns(criteria)
        first.clear()
        assert builtin_patterns(criteria) == list(RUST_FMT_PATTERNS)

    def test_all_builtin_patterns_compile(self) -> None:
        assert len(compile_patterns([*RUST_FMT_PATTERNS, *RUST_PANICKING_PATTERNS])) == 12


# -------------------------------------------------------------------------
# select_functions
# -------------------------------------------------------------------------


class TestExactNames:
    def test_single(self) -> None:
        assert select_functions(HELLO_NAMES, SelectionCriteria(functions=["foo"])) == {FOO}

    def test_several(self) -> None:
        criteria = SelectionCriteria(functions=["bar", "foo"])
        assert select_functions(HELLO_NAMES, criteria) == {FOO, BAR}

    def test_duplicate_request(self) -> None:
        criteria = SelectionCriteria(functions=["foo", "foo"])
        assert select_functions(HELLO_NAMES, criteria) == {FOO}

    def test_shared_name_selects_all(self) -> None:
        names = {1: "dup", 2: "dup", 3: "other"}
        assert select_functions(names, SelectionCriteria(functions=["dup"])) == {1, 2}

    def test_exact_is_not_substring(self) -> None:
        with pytest.raises(UnknownFunctionError):
            select_functions(HELLO_NAMES, SelectionCriteria(functions=["fo"]))

    def test_unknown_lists_every_missing_name(self) -> None:
        criteria = SelectionCriteria(functions=["nope", "foo", "typo", "nope"])
        with pytest.raises(UnknownFunctionError) as exc_info:
            select_functions(HELLO_NAMES, criteria)
        assert exc_info.value.names == ["nope", "typo"]
        assert "'nope'" in str(exc_info.value)

    def test_empty_name_map(self) -> None:
        with pytest.raises(UnknownFunctionError):
            select_functions({}, SelectionCriteria(functions=["foo"]))

    def test_imported_function_is_selected(self) -> None:
        criteria = SelectionCriteria(functions=["imported"])
        assert select_functions(HELLO_NAMES, criteria) == {IMPORTED}


class TestPatterns:
    def test_regex(self) -> None:
        criteria = SelectionCriteria(patterns=["^(foo|bar)$"])
        assert select_functions(HELLO_NAMES, criteria) == {FOO, BAR}

    def test_search_is_unanchored(self) -> None:
        criteria = SelectionCriteria(patterns=["silver"])
        assert select_functions(HELLO_NAMES, criteria) == {QUICKSILVER}

    def test_zero_matches_is_fine(self) -> None:
        criteria = SelectionCriteria(patterns=["^core::fmt::nothing$"])
        assert select_functions(HELLO_NAMES, criteria) == frozenset()

    def test_pattern_on_empty_map(self) -> None:
        assert select_functions({}, SelectionCriteria(patterns=[".*"])) == frozenset()

    def test_pattern_matches_imports_too(self) -> None:
        criteria = SelectionCriteria(patterns=["^imp"])
        assert select_functions(HELLO_NAMES, criteria) == {IMPORTED}

    def test_invalid_regex(self) -> None:
        with pytest.raises(InvalidSelectionError) as exc_info:
            select_functions(HELLO_NAMES, SelectionCriteria(patterns=["(unclosed"]))
        assert exc_info.value.pattern == "(unclosed"

    def test_invalid_regex_reported_before_unknown_names(self) -> None:
        criteria = SelectionCriteria(functions=["missing"], patterns=["[bad"])
        with pytest.raises(InvalidSelectionError):
            select_functions(HELLO_NAMES, criteria)

    def test_union_with_exact(self) -> None:
        criteria = SelectionCriteria(functions=["foo"], patterns=["^bar$"])
        assert select_functions(HELLO_NAMES, criteria) == {FOO, BAR}


class TestBuiltinSets:
    def test_fmt(self) -> None:
        criteria = SelectionCriteria(snip_rust_fmt_code=True)
        assert select_functions(HELLO_NAMES, criteria) == {FMT_WRITE}

    def test_panicking_mangled(self) -> None:
        criteria = SelectionCriteria(snip_rust_panicking_code=True)
        assert select_functions(HELLO_NAMES, criteria) == {PANIC}

    @pytest.mark.parametrize(
        "name",
        [
            "_ZN4core3fmt9Formatter3pad17h0000000000000000E",
            "_ZN3std3fmt5write17h0000000000000000E",
            "_$LT$core..fmt..Arguments$u20$as$u20$core..fmt..Display$GT$::fmt",
            "std::fmt::format::format_inner",
        ],
    )
    def test_fmt_shapes(self, name: str) -> None:
        names = {7: name}
        assert select_functions(names, SelectionCriteria(snip_rust_fmt_code=True)) == {7}

    @pytest.mark.parametrize(
        "name",
        [
            "_ZN3std9panicking11begin_panic17h0000000000000000E",
            "_$LT$std..panicking..Payload$GT$::get",
            "core::panicking::panic_fmt",
        ],
    )
    def test_panicking_shapes(self, name: str) -> None:
        names = {7: name}
        criteria = SelectionCriteria(snip_rust_panicking_code=True)
        assert select_functions(names, criteria) == {7}

    def test_disabled_sets_select_nothing(self) -> None:
        assert select_functions(HELLO_NAMES, SelectionCriteria()) == frozenset()


def test_selection_matches_definition() -> None:
    """Every function is selected iff one of the three rules picks it."""
    names = {i: n for i, n in enumerate(["a", "ab", "core::fmt::x", "zz", "abc"])}
    criteria = SelectionCriteria(functions=["zz"], patterns=["^ab"], snip_rust_fmt_code=True)
    selected = select_functions(names, criteria)
    for index, name in names.items():
        expected = name == "zz" or name.startswith("ab") or "core::fmt::" in name
        assert (index in selected) == expected


def test_criteria_order_does_not_matter() -> None:
    a = SelectionCriteria(functions=["foo", "bar"], patterns=["silver", "fmt"])
    b = SelectionCriteria(functions=["bar", "foo"], patterns=["fmt", "silver"])
    assert select_functions(HELLO_NAMES, a) == select_functions(HELLO_NAMES, b)
