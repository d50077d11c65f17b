"""
Tests for wikipub/tokens.py - edit form token harvesting.
"""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from wikipub.errors import ParseError
from wikipub.session import WikiSession
from wikipub.tokens import EXCLUDED_FIELDS, harvest_tokens, parse_tokens
from wiki_fakes import EDIT_FORM, UPLOAD_FORM, FakeTransport, make_response


EDIT_URL = "https://2024.igem.org/Team:Example/Design?action=edit"


class TestParseTokens:
    """Tests for parse_tokens function."""

    def test_hidden_tokens_verbatim(self):
        """Hidden values are kept byte for byte."""
        tokens = parse_tokens(EDIT_FORM)
        assert tokens['wpEditToken'] == "d41d8cd98f+\\"
        assert tokens['wpStarttime'] == "20240601120000"
        assert tokens['wpEdittime'] == "20240530090000"

    def test_preview_and_diff_excluded(self):
        """Preview and diff buttons are dropped."""
        tokens = parse_tokens(EDIT_FORM)
        for name in EXCLUDED_FIELDS:
            assert name not in tokens

    def test_save_button_kept(self):
        """The save button is echoed back."""
        assert parse_tokens(EDIT_FORM)['wpSave'] == "Save page"

    def test_missing_value_is_empty(self):
        """Inputs without a value map to an empty string."""
        assert parse_tokens(EDIT_FORM)['wpMinoredit'] == ""

    def test_nameless_inputs_skipped(self):
        """Inputs without a name are ignored."""
        assert "nameless" not in parse_tokens(EDIT_FORM).values()

    def test_upload_form(self):
        """Upload form tokens are collected."""
        tokens = parse_tokens(UPLOAD_FORM)
        assert tokens['wpEditToken'] == "upload-token+\\"
        assert tokens['title'] == "Special:Upload"
        assert tokens['wpUploadFile'] == ""

    def test_empty_page(self):
        """Empty page is ParseError."""
        with pytest.raises(ParseError):
            parse_tokens("   ")

    def test_page_without_inputs(self):
        """Page without inputs is ParseError."""
        with pytest.raises(ParseError):
            parse_tokens("<html><body><p>Login required</p></body></html>")


class TestHarvestTokens:
    """Tests for harvest_tokens function."""

    def test_fetches_edit_form(self):
        """Tokens come from a GET of the edit URL."""
        transport = FakeTransport({('GET', EDIT_URL): make_response(200, EDIT_URL, EDIT_FORM)})
        tokens = harvest_tokens(WikiSession(http=transport), EDIT_URL)
        assert tokens['wpEditToken'] == "d41d8cd98f+\\"
        assert transport.calls_to('GET', EDIT_URL)

    def test_fresh_tokens_per_call(self):
        """Every call fetches fresh tokens."""
        first = EDIT_FORM
        second = EDIT_FORM.replace("d41d8cd98f", "rotated")
        transport = FakeTransport({('GET', EDIT_URL): [
            make_response(200, EDIT_URL, first),
            make_response(200, EDIT_URL, second),
        ]})
        session = WikiSession(http=transport)
        assert harvest_tokens(session, EDIT_URL)['wpEditToken'].startswith("d41d8cd98f")
        assert harvest_tokens(session, EDIT_URL)['wpEditToken'].startswith("rotated")

    def test_missing_page_with_inputs(self):
        """A 404 upload form still yields tokens."""
        # File pages that do not exist yet answer 404 around a usable form
        transport = FakeTransport({('GET', EDIT_URL): make_response(404, EDIT_URL, UPLOAD_FORM)})
        tokens = harvest_tokens(WikiSession(http=transport), EDIT_URL)
        assert tokens['wpEditToken'] == "upload-token+\\"

    def test_server_error_with_inputs_still_parsed(self):
        """A non-200 status is only logged; the inputs are still harvested."""
        transport = FakeTransport({('GET', EDIT_URL): make_response(500, EDIT_URL, EDIT_FORM)})
        tokens = harvest_tokens(WikiSession(http=transport), EDIT_URL)
        assert tokens['wpEditToken'] == "d41d8cd98f+\\"

    def test_empty_response_is_parse_error(self):
        """Empty redirect body is ParseError."""
        transport = FakeTransport({('GET', EDIT_URL): make_response(302, EDIT_URL)})
        with pytest.raises(ParseError):
            harvest_tokens(WikiSession(http=transport), EDIT_URL)
