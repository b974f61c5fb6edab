import pytest
from jinja2 import TemplateSyntaxError
from jinja2.exceptions import SecurityError

from linkauth.infrastructure.services.email.template_renderer import (
    TemplateRenderer,
    email_handler,
)


def test_email_handler():
    assert email_handler("jane.doe@example.com") == "jane.doe"
    assert email_handler("no-at-sign") == "no-at-sign"


def test_render_user_email():
    subject, body = TemplateRenderer().render_user_email(
        "App A", "jane@example.com", "https://x.com/cb?token=a-b-c&lang=en", "a-b-c"
    )

    assert subject == "Here is your magic link for 'App A' 🔐"
    assert "Hi jane," in body
    assert 'href="https://x.com/cb?token=a-b-c&amp;lang=en"' in body
    assert "a-b-c" in body


def test_render_app_email():
    subject, body = TemplateRenderer().render_app_email(
        "a1b2", "App A", "https://x.com/cb", "s3cr3t", "admin@x.com"
    )

    assert subject == "Your app 'App A' is ready! 🎉"
    assert "a1b2" in body
    assert "s3cr3t" in body
    assert "https://x.com/cb" in body
    assert "Hi admin," in body


def test_values_are_escaped():
    _, body = TemplateRenderer().render_app_email(
        "a1b2", "<script>alert(1)</script>", "https://x.com", "s", "admin@x.com"
    )
    assert "<script>" not in body
    assert "&lt;script&gt;" in body


def test_custom_templates_from_paths(tmp_path):
    user_path = tmp_path / "user.html"
    user_path.write_text("{{ email_handler }} -> {{ magic_link }}", encoding="utf-8")

    renderer = TemplateRenderer.from_paths(user_template_path=str(user_path))

    _, body = renderer.render_user_email("App", "jane@example.com", "https://x.com", "t")
    assert body == "jane -> https://x.com"
    _, app_body = renderer.render_app_email("a1b2", "App", "https://x.com", "s", "admin@x.com")
    assert "a1b2" in app_body


def test_invalid_template_rejected():
    with pytest.raises(TemplateSyntaxError):
        TemplateRenderer(user_template="{% if %}")


def test_sandbox_blocks_unsafe_access():
    renderer = TemplateRenderer(user_template='{{ app_name|attr("__class__")() }}')
    with pytest.raises(SecurityError):
        renderer.render_user_email("App", "user@x.com", "https://x.com", "a-b-c")
