"""Jinja2 template renderer for the magic link and app created emails.

Provides safe template rendering with HTML escaping and error handling.
"""

from pathlib import Path

from jinja2 import Template, TemplateSyntaxError, UndefinedError
from jinja2.sandbox import SandboxedEnvironment

from linkauth.core.logging import get_logger
from linkauth.infrastructure.services.email.templates import (
    APP_EMAIL_SUBJECT,
    APP_EMAIL_TEMPLATE,
    USER_EMAIL_SUBJECT,
    USER_EMAIL_TEMPLATE,
)

logger = get_logger(__name__)


def email_handler(address: str) -> str:
    """Return the local part of an email address."""
    return address.split("@", 1)[0]


class TemplateRenderer:
    """Jinja2 template renderer with security features.

    Uses sandboxed environment to prevent code execution in templates.
    Both email templates are compiled once, at construction.
    """

    def __init__(
        self,
        user_template: str = USER_EMAIL_TEMPLATE,
        app_template: str = APP_EMAIL_TEMPLATE,
    ) -> None:
        """Initialize the renderer and compile the email templates.

        Raises:
            TemplateSyntaxError: If a template is not valid Jinja2.
        """
        self.env = SandboxedEnvironment(
            autoescape=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self._user_template = self._compile(user_template)
        self._app_template = self._compile(app_template)

    @classmethod
    def from_paths(
        cls, user_template_path: str | None = None, app_template_path: str | None = None
    ) -> "TemplateRenderer":
        """Build a renderer, reading the templates that have a path from disk."""
        user_template = (
            Path(user_template_path).read_text(encoding="utf-8")
            if user_template_path
            else USER_EMAIL_TEMPLATE
        )
        app_template = (
            Path(app_template_path).read_text(encoding="utf-8")
            if app_template_path
            else APP_EMAIL_TEMPLATE
        )
        return cls(user_template, app_template)

    def _compile(self, template_string: str) -> Template:
        try:
            return self.env.from_string(template_string)
        except TemplateSyntaxError as e:
            logger.error("Template syntax error", error=str(e), line=e.lineno)
            raise

    def _render(self, template: Template, variables: dict[str, str]) -> str:
        try:
            rendered = template.render(**variables)
            logger.debug("Template rendered successfully", variable_count=len(variables))
            return rendered
        except UndefinedError as e:
            logger.error("Undefined variable in template", error=str(e))
            raise

    def render_user_email(
        self, app_name: str, address: str, magic_link: str, token: str
    ) -> tuple[str, str]:
        """Render the magic link email.

        Returns:
            Tuple of (subject, html_body).
        """
        body = self._render(
            self._user_template,
            {
                "app_name": app_name,
                "email_handler": email_handler(address),
                "magic_link": magic_link,
                "token": token,
            },
        )
        return USER_EMAIL_SUBJECT.format(app_name=app_name), body

    def render_app_email(
        self,
        app_id: str,
        app_name: str,
        redirect_url: str,
        secret: str,
        address: str,
    ) -> tuple[str, str]:
        """Render the app created email.

        Returns:
            Tuple of (subject, html_body).
        """
        body = self._render(
            self._app_template,
            {
                "app_id": app_id,
                "app_name": app_name,
                "redirect_url": redirect_url,
                "secret": secret,
                "email_handler": email_handler(address),
            },
        )
        return APP_EMAIL_SUBJECT.format(app_name=app_name), body
