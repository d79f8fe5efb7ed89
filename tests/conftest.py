import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from whatjsx.tasks import formatting, settings
from whatjsx.tasks.utils import encode_b64_text


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Ingen användarfil, inga env-överskrivningar."""
    monkeypatch.setattr(settings, "SETTINGS_PATH", tmp_path / "settings.json")
    monkeypatch.setattr(settings, "RECEIVERS_ENV", "")
    monkeypatch.setattr(settings, "FORMAT_ENV", "")
    return tmp_path / "settings.json"


@pytest.fixture(autouse=True)
def no_prettier(monkeypatch):
    """Prettier krävs aldrig i testerna; formatering blir en no-op."""
    monkeypatch.setattr(formatting, "_prettier_bin", lambda base=None: None)


@pytest.fixture
def streamed():
    def _make(path: str, text: str, **extra) -> dict:
        payload = {"path": path, "content_b64": encode_b64_text(text)}
        payload.update(extra)
        return payload

    return _make


REQUIRE_SHIM = """var r = ((e) => typeof require !== "undefined" ? require : e)(function(e) {
  throw Error('Calling `require` for "' + e + '" in an environment without require.');
});
"""

EXPORT_ALL = """var i = (e, t) => {
  let n = {};
  return t && o(n, Symbol.toStringTag, { value: "Module" }), n;
};
"""


@pytest.fixture
def require_shim() -> str:
    return REQUIRE_SHIM


@pytest.fixture
def export_all_helper() -> str:
    return EXPORT_ALL
