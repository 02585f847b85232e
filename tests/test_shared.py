from datetime import datetime, timedelta

import pytest

from pianomanager.security_utils import (
    create_jwt_token,
    decrypt_password,
    encrypt_password,
    sanitize_html,
    verify_jwt_token,
)
from pianomanager.shared.templating import extract_variables, render_template, replace_variables
from pianomanager.shared.validators import validate_email, validate_hex_color, validate_phone, validate_slug


class TestReplaceVariables:
    def test_nested_paths(self):
        data = {"client": {"name": "María", "address": {"city": "Madrid"}}}
        assert replace_variables("Hola {client.name} de {client.address.city}", data) == "Hola María de Madrid"

    def test_unknown_paths_are_left_untouched(self):
        assert replace_variables("Hola {client.surname}", {"client": {"name": "x"}}) == "Hola {client.surname}"

    def test_none_becomes_empty_and_dates_are_formatted(self):
        data = {"a": {"b": None}, "when": datetime(2024, 3, 5, 9, 30)}
        assert replace_variables("[{a.b}] {when}", data) == "[] 05/03/2024 09:30"

    def test_non_string_template_is_returned_as_is(self):
        assert replace_variables(None, {}) is None

    def test_extract_variables_keeps_first_appearance_order(self):
        assert extract_variables("{b.x} {a.y} {b.x}") == ["b.x", "a.y"]


class TestRenderTemplate:
    def test_flat_names_with_spaces(self):
        assert render_template("Hola {{ cliente_nombre }}!", {"cliente_nombre": "Ana"}) == "Hola Ana!"

    def test_unknown_names_are_left_untouched(self):
        assert render_template("{{importe}}", {}) == "{{importe}}"

    def test_does_not_touch_single_brace_paths(self):
        assert render_template("{client.name} {{x}}", {"x": "1"}) == "{client.name} 1"


class TestValidators:
    def test_phone_keeps_leading_plus(self):
        assert validate_phone("+34 600 11 22 33") == "+34600112233"
        assert validate_phone("600-112-233") == "600112233"

    def test_phone_too_short(self):
        with pytest.raises(ValueError):
            validate_phone("123")

    def test_email_is_lowercased(self):
        assert validate_email(" Ana@Example.COM ") == "ana@example.com"

    def test_invalid_email(self):
        with pytest.raises(ValueError):
            validate_email("not-an-email")

    def test_slug(self):
        assert validate_slug("Steinway-Iberica") == "steinway-iberica"
        with pytest.raises(ValueError):
            validate_slug("bad slug")

    def test_hex_color(self):
        assert validate_hex_color("#3B82F6") == "#3b82f6"
        with pytest.raises(ValueError):
            validate_hex_color("blue")


class TestSecurity:
    def test_jwt_round_trip(self):
        token = create_jwt_token({"sub": "uid-1", "email": "a@example.com"})
        payload = verify_jwt_token(token)
        assert payload["sub"] == "uid-1"

    def test_expired_token_is_rejected(self):
        token = create_jwt_token({"sub": "uid-1"}, expires_delta=timedelta(seconds=-5))
        assert verify_jwt_token(token) is None

    def test_smtp_password_is_encrypted(self):
        encrypted = encrypt_password("s3cret")
        assert encrypted != "s3cret"
        assert decrypt_password(encrypted) == "s3cret"

    def test_plain_text_password_is_returned_unchanged(self):
        assert decrypt_password("legacy-plain") == "legacy-plain"

    def test_sanitize_html_strips_scripts(self):
        cleaned = sanitize_html('<p onclick="x()">Hola</p><script>alert(1)</script>')
        assert "<script>" not in cleaned
        assert "onclick" not in cleaned
        assert "<p>Hola</p>" in cleaned
