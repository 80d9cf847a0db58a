from __future__ import annotations

import runpy
import sys

import pytest


def test_module_runs_as_script(monkeypatch):
    import pltsync.cli

    called = {"ok": False}

    def fake_run() -> None:
        called["ok"] = True

    monkeypatch.setattr(pltsync.cli, "run", fake_run)

    sys.modules.pop("pltsync.__main__", None)

    with pytest.raises(SystemExit) as exc:
        runpy.run_module("pltsync.__main__", run_name="__main__")

    assert called["ok"] is True
    assert exc.value.code is None
