from __future__ import annotations

import logging

import pytest

from cwkgen.config import BOLD_FONT_CANDIDATES, FONT_CANDIDATES
from cwkgen.fonts import (
    FontRegistry,
    is_generic_family,
    normalize_style,
    normalize_weight,
)


def _any_system_font():
    for path in list(FONT_CANDIDATES) + list(BOLD_FONT_CANDIDATES):
        if path.exists():
            return path
    return None


def test_normalizers():
    assert normalize_weight("700") == "bold"
    assert normalize_weight(None) == "normal"
    assert normalize_style("Oblique") == "italic"
    assert is_generic_family("Sans-Serif")
    assert not is_generic_family("Inter")


def test_generic_family_never_warns(fonts: FontRegistry, caplog):
    with caplog.at_level(logging.WARNING, logger="cwkgen.fonts"):
        assert fonts.warn_if_unregistered("monospace", subject="alice", card="profile card") is False
    assert caplog.records == []


def test_unregistered_family_warns_with_subject(fonts: FontRegistry, caplog):
    with caplog.at_level(logging.WARNING, logger="cwkgen.fonts"):
        assert fonts.warn_if_unregistered("Fancy Script", subject="alice", card="profile card")
    assert "Fancy Script" in caplog.text
    assert "alice" in caplog.text


def test_register_missing_file(fonts: FontRegistry, tmp_path):
    with pytest.raises(FileNotFoundError):
        fonts.register(tmp_path / "nope.ttf", "Nope")
    with pytest.raises(ValueError):
        fonts.register(tmp_path / "nope.ttf", "  ")


def test_register_is_idempotent(fonts: FontRegistry):
    path = _any_system_font()
    if path is None:
        pytest.skip("no system TrueType font available")
    first = fonts.register(path, "Brand", weight="bold")
    second = fonts.register(path, "Brand", weight="700")
    assert first == second
    assert fonts.families() == ["Brand"]
    assert fonts.is_registered("Brand")
    assert fonts.lookup("Brand", bold=True) == path
    assert fonts.warn_if_unregistered("Brand", subject="alice", card="rank card") is False


def test_resolve_always_returns_a_font(fonts: FontRegistry):
    font = fonts.resolve("Unregistered", 18, bold=True)
    assert hasattr(font, "getbbox")
    assert fonts.resolve("serif", 0) is not None


def test_padded_family_name_matches_registration(fonts: FontRegistry, tmp_path, monkeypatch, caplog):
    font_file = tmp_path / "brand.ttf"
    font_file.write_bytes(b"\x00\x01\x00\x00")
    monkeypatch.setattr("cwkgen.fonts.load_truetype_font", lambda path, size: None)
    fonts.register(font_file, " Brand ")
    with caplog.at_level(logging.WARNING, logger="cwkgen.fonts"):
        assert fonts.warn_if_unregistered("Brand ", subject="alice", card="rank card") is False
        assert fonts.warn_if_unregistered("  ", subject="alice", card="rank card") is False
    assert caplog.records == []
