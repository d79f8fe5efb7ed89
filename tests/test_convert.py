from __future__ import annotations

import subprocess

from whatjsx.tasks import convert, formatting
from whatjsx.tasks.convert import convert_source, find_root_file_id, transform_files
from whatjsx.tasks.settings import PipelineSettings

ELEMENT = 'export const App = () => React.createElement("div", { id: "x" }, "hello");\n'
BS = "\\"


def test_convert_source_runs_the_pipeline(require_shim):
    out = convert_source(require_shim + ELEMENT + "export { r };\n")
    assert "var __require" in out["converted"]
    assert '<div id="x">hello</div>' in out["converted"]
    assert "error" not in out


def test_convert_source_reports_syntax_error():
    out = convert_source("React.createElement(")
    assert "converted" not in out
    assert out["error"].startswith("Syntaxfel på rad 1")


def test_convert_source_respects_flags(require_shim):
    s = PipelineSettings(normalize_shims=False, receivers=None)
    out = convert_source(require_shim + 'h.createElement("i");\n', s)
    assert "var r =" in out["converted"]
    assert "<i />;" in out["converted"]


def test_convert_source_formats_when_enabled(monkeypatch):
    seen = []
    monkeypatch.setattr(convert, "format_code", lambda code, opts=None: seen.append(code) or code.upper())
    out = convert_source('React.createElement("br");')
    assert out == {"converted": "<BR />;"}
    assert seen == ["<br />;"]


def test_convert_source_with_lone_surrogate_survives_formatting(monkeypatch):
    def echo_run(cmd, **kwargs):
        kwargs["input"].encode("utf-8")
        return subprocess.CompletedProcess(cmd, 0, stdout=kwargs["input"], stderr="")

    monkeypatch.setattr(formatting, "_prettier_bin", lambda base=None: ["prettier"])
    monkeypatch.setattr(subprocess, "run", echo_run)
    out = convert_source('React.createElement("p", null, "' + BS + 'uD800");')
    assert out == {"converted": '<p>{"' + BS + 'uD800"}</p>;'}


def test_find_root_file_id():
    files = [{"id": "a", "content": "x"}, {"id": "b", "content": "React.createElement()"}, {"id": "c", "content": "createElement"}]
    assert find_root_file_id(files) == "b"
    assert find_root_file_id([{"id": "a", "content": ""}]) is None


def test_transform_files_task(streamed):
    files = [
        streamed("dist/vendor.js", "var a = 1;\n"),
        streamed("dist/index.js", ELEMENT, id="main"),
    ]
    result = transform_files.apply(args=[files]).get()

    assert result["rootFileId"] == "main"
    vendor, index = result["files"]
    assert vendor["id"] == "dist/vendor.js" and vendor["name"] == "vendor.js"
    assert vendor["isRoot"] is False
    assert vendor["converted"] == "var a = 1;\n"
    assert vendor["stats"] == {"added": 0, "removed": 0}
    assert index["isRoot"] is True
    assert index["error"] is None
    assert '<div id="x">hello</div>' in index["converted"]
    assert index["content"] == ELEMENT
    assert index["diff"].startswith("--- a/dist/index.js\n+++ b/dist/index.js\n")
    assert index["stats"] == {"added": 1, "removed": 1}


def test_transform_files_isolates_failures(streamed, monkeypatch):
    real = convert.reconstruct_jsx

    def flaky(text, receivers=None):
        if "boom" in text:
            raise RuntimeError("kaboom")
        return real(text, receivers=receivers)

    monkeypatch.setattr(convert, "reconstruct_jsx", flaky)
    files = [
        streamed("broken.js", "React.createElement("),
        streamed("boom.js", "var boom = 1;"),
        streamed("bad-b64.js", ""),
        streamed("ok.js", ELEMENT),
    ]
    files[2]["content_b64"] = "abc"
    out = transform_files.apply(args=[files]).get()["files"]

    assert out[0]["error"].startswith("Syntaxfel")
    assert out[0]["converted"] == ""
    assert out[1]["error"] == "kaboom"
    assert out[2]["error"].startswith("Ogiltig base64")
    assert out[3]["error"] is None


def test_transform_files_rejects_oversized_files(streamed):
    big = "var a = 1;\n" * 200
    out = transform_files.apply(args=[[streamed("big.js", big)], {"maxFileBytes": 1000}]).get()
    assert "för stor" in out["files"][0]["error"]
    assert out["files"][0]["converted"] == ""
