"""
Unit tests for VaultService.

Tests cover:
- Listing markdown documents recursively
- Reading and path safety
- Offset to line mapping
- Line reads and writes
"""

import pytest

from app.services.vault_service import VaultService


@pytest.fixture
def vault(tmp_path):
    vault = VaultService(str(tmp_path / "vault"))
    (vault.vault_dir / "sub").mkdir()
    (vault.vault_dir / "a.md").write_text("alpha\nbeta\ngamma", encoding="utf-8")
    (vault.vault_dir / "sub" / "b.md").write_text("==b==", encoding="utf-8")
    (vault.vault_dir / "image.png").write_bytes(b"\x89PNG")
    return vault


class TestListing:
    def test_creates_missing_directory(self, tmp_path):
        VaultService(str(tmp_path / "new" / "vault"))

        assert (tmp_path / "new" / "vault").is_dir()

    def test_lists_markdown_only(self, vault):
        assert vault.list_documents() == ["a.md", "sub/b.md"]


class TestReading:
    def test_read(self, vault):
        assert vault.read("sub/b.md") == "==b=="

    def test_missing_document(self, vault):
        with pytest.raises(FileNotFoundError):
            vault.read("nope.md")

    def test_path_outside_vault(self, vault):
        with pytest.raises(ValueError):
            vault.read("../outside.md")


class TestLines:
    def test_offset_to_line(self, vault):
        text = vault.read("a.md")

        assert vault.offset_to_line("a.md", 0) == 0
        assert vault.offset_to_line("a.md", text.index("beta")) == 1
        assert vault.offset_to_line("a.md", text.index("gamma")) == 2
        assert vault.offset_to_line("a.md", len(text) + 1) is None
        assert vault.offset_to_line("missing.md", 0) is None

    def test_get_and_set_line(self, vault):
        assert vault.get_line("a.md", 1) == "beta"

        vault.set_line("a.md", 1, "beta ^id1")

        assert vault.read("a.md") == "alpha\nbeta ^id1\ngamma"

    def test_line_out_of_range(self, vault):
        with pytest.raises(ValueError):
            vault.get_line("a.md", 3)
        with pytest.raises(ValueError):
            vault.set_line("a.md", -1, "x")

    def test_crlf_documents_round_trip(self, vault):
        (vault.vault_dir / "crlf.md").write_bytes(b"alpha\r\nbeta\r\n")

        assert vault.read("crlf.md") == "alpha\r\nbeta\r\n"
        assert vault.get_line("crlf.md", 1) == "beta"

        vault.set_line("crlf.md", 0, "ALPHA")

        assert (vault.vault_dir / "crlf.md").read_bytes() == b"ALPHA\r\nbeta\r\n"
