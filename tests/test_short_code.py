"""Tests for short code generation."""

import pytest

from qrlink.services import short_code as short_code_module
from qrlink.services.short_code import SHORT_CODE_ALPHABET, ShortCodeGenerator, random_short_code

from conftest import make_qr_code


class TestRandomShortCode:
    def test_length_and_alphabet(self):
        for length in [8, 12]:
            code = random_short_code(length)
            assert len(code) == length
            assert set(code) <= set(SHORT_CODE_ALPHABET)

    def test_alphabet_is_url_safe(self):
        assert len(SHORT_CODE_ALPHABET) == 64
        assert set("_-") <= set(SHORT_CODE_ALPHABET)


class TestShortCodeGenerator:
    """Collision handling against stored codes."""

    @pytest.mark.asyncio
    async def test_returns_unused_code(self, session):
        code = await ShortCodeGenerator(session).generate()
        assert len(code) == 8

    @pytest.mark.asyncio
    async def test_retries_on_collision(self, session, monkeypatch):
        await make_qr_code(session, short_code="taken001")
        candidates = iter(["taken001", "fresh001"])
        monkeypatch.setattr(short_code_module, "random_short_code", lambda length: next(candidates))

        assert await ShortCodeGenerator(session).generate() == "fresh001"

    @pytest.mark.asyncio
    async def test_deleted_codes_count_as_taken(self, session, monkeypatch):
        await make_qr_code(session, short_code="gone0001")
        await short_code_module.QRCodeService(session).soft_delete("gone0001")
        candidates = iter(["gone0001", "fresh001"])
        monkeypatch.setattr(short_code_module, "random_short_code", lambda length: next(candidates))

        assert await ShortCodeGenerator(session).generate() == "fresh001"

    @pytest.mark.asyncio
    async def test_falls_back_to_longer_code(self, session, monkeypatch):
        await make_qr_code(session, short_code="taken001")
        lengths = []

        def always_taken(length):
            lengths.append(length)
            return "taken001" if length == 8 else "x" * length

        monkeypatch.setattr(short_code_module, "random_short_code", always_taken)

        code = await ShortCodeGenerator(session).generate()
        assert code == "x" * 12
        assert lengths == [8, 8, 8, 8, 8, 12]
