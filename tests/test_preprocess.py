from __future__ import annotations

import pytest

from whatjsx.tasks.preprocess import (
    EXPORT_ALL_NAME,
    REQUIRE_NAME,
    find_rename_targets,
    normalize_shims,
)
from whatjsx.tasks.syntax import ParseError, parse


def test_require_shim_declaration_and_function_are_named(require_shim):
    out = normalize_shims(require_shim + "export { r };\n")
    assert out.startswith("var __require = ((e) =>")
    assert "(function __require(e) {" in out
    assert out.endswith("export { __require };\n")


def test_export_all_helper_keeps_alias(export_all_helper):
    out = normalize_shims(export_all_helper + "export { i as n };\n")
    assert out.startswith("var __exportAll = (e, t) => {")
    assert out.endswith("export { __exportAll as n };\n")


def test_both_shims_in_one_export_clause(require_shim, export_all_helper):
    out = normalize_shims(require_shim + export_all_helper + "export { i as n, r };\n")
    assert out.endswith("export { __exportAll as n, __require };\n")


def test_named_shim_function_is_renamed():
    src = (
        "var r = ((e) => e)(function req(e) {\n"
        "  throw new Error('Calling `require` for \"' + e + '\"');\n"
        "});\n"
    )
    out = normalize_shims(src)
    assert out == src.replace("var r", "var " + REQUIRE_NAME).replace("function req", "function " + REQUIRE_NAME)


def test_only_first_match_per_kind(require_shim):
    second = require_shim.replace("var r", "var q")
    out = normalize_shims(require_shim + second)
    assert "var __require" in out
    assert "var q" in out
    assert out.count("var __require") == 1


def test_nested_declaration_is_found(export_all_helper):
    src = "(function () {\n" + export_all_helper + "})();\n"
    targets = find_rename_targets(parse(src))
    assert [(t.bound_name, t.canonical_name) for t in targets] == [("i", EXPORT_ALL_NAME)]


def test_reexport_from_other_module_is_untouched(require_shim):
    out = normalize_shims(require_shim + 'export { r } from "./other";\n')
    assert out.endswith('export { r } from "./other";\n')


def test_template_module_tag_is_detected():
    src = "var t = (e) => (d(e, Symbol.toStringTag, { value: `Module` }), e);\n"
    assert normalize_shims(src) == src.replace("var t", "var __exportAll")


def test_lookalikes_are_left_alone():
    src = (
        "var a = ((e) => e)(function (e) { throw Error('something else'); });\n"
        "var b = (e) => d(e, Symbol.iterator, { value: \"Module\" });\n"
        "var c = function (e) { return d(e, Symbol.toStringTag, { value: \"Module\" }); };\n"
    )
    assert normalize_shims(src) == src


def test_input_without_shims_is_returned_unchanged():
    src = "const x = 1;\n\n  export { x };\n"
    assert normalize_shims(src) is src


def test_normalization_is_idempotent(require_shim, export_all_helper):
    once = normalize_shims(require_shim + export_all_helper + "export { i as n, r };\n")
    assert normalize_shims(once) == once


def test_parse_error_is_raised():
    with pytest.raises(ParseError):
        normalize_shims("var = ;")
