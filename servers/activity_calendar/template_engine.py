"""Jinja2 template engine for calendar rendering."""

from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, select_autoescape

from .models import Tier

TEMPLATE_DIR = Path(__file__).parent / "templates"

TIER_LABELS = {
    Tier.ONGOING: "当前活动",
    Tier.PREVIOUS: "上一个活动",
    Tier.NEXT: "下一个活动",
    Tier.UPCOMING: "即将开始",
    Tier.LISTING: "活动列表",
}


def tier_label(tier: Tier | None) -> str:
    return TIER_LABELS.get(tier, "") if tier else ""


class TemplateEngine:
    """Render calendar templates using Jinja2."""

    def __init__(self, template_dir: Path | None = None):
        """Initialize template engine with template directory.

        Args:
            template_dir: Path to templates directory.
                         Defaults to the package templates/ folder.
        """
        self.template_dir = template_dir or TEMPLATE_DIR
        self.env = Environment(
            loader=FileSystemLoader(self.template_dir),
            autoescape=select_autoescape(["html", "xml", "j2"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.filters["tier_label"] = tier_label

    def render(self, template_name: str, context: dict[str, Any]) -> str:
        """Render a template with the given context.

        Raises:
            TemplateNotFound: If template doesn't exist
        """
        template = self.env.get_template(template_name)
        return template.render(**context)
