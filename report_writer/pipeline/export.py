"""
Report Exporter — renders generated outlines and reports as Markdown, HTML
or plain text for download.
"""
import re
from datetime import datetime
from typing import Dict, List, Optional, Tuple

import markdown
from jinja2 import Environment
from markupsafe import Markup, escape

from report_writer.config.settings import Config, get_config
from report_writer.config.types import OutlineResult, ReportResult
from report_writer.config.logger import get_logger

logger = get_logger(__name__)

EXPORT_FORMATS: Dict[str, Tuple[str, str]] = {
    # format -> (media type, file extension)
    "markdown": ("text/markdown; charset=utf-8", "md"),
    "html": ("text/html; charset=utf-8", "html"),
    "txt": ("text/plain; charset=utf-8", "txt"),
}


HTML_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>{{ title }}</title>
<style>
  body { font-family: Georgia, serif; max-width: 52rem; margin: 2rem auto; line-height: 1.6; color: #222; }
  h1 { border-bottom: 2px solid #2a6f97; padding-bottom: .3rem; }
  h2 { color: #2a6f97; margin-top: 2rem; }
  nav.toc { background: #f4f7f9; padding: .8rem 1.2rem; border-radius: 4px; }
  .meta { color: #777; font-size: .9rem; }
</style>
</head>
<body>
<h1>{{ title }}</h1>
<p class="meta">Generated {{ generated_date }} &middot; {{ section_count }} sections</p>
{% if toc %}
<nav class="toc">
  <strong>Contents</strong>
  <ol>
  {% for entry in toc %}<li><a href="#{{ entry.id }}">{{ entry.title }}</a></li>
  {% endfor %}</ol>
</nav>
{% endif %}
{{ content }}
</body>
</html>
"""


class ReportExporter:
    """Converts ReportResult / OutlineResult objects into downloadable text."""

    def __init__(self, config: Optional[Config] = None):
        self._config = config
        self._slugs: Dict[str, int] = {}

    @property
    def config(self) -> Config:
        return self._config or get_config()

    @staticmethod
    def _slug(text: str) -> str:
        """Convert text to a URL-friendly slug"""
        slug = text.lower()
        slug = re.sub(r'[^\w\s-]', '', slug)
        slug = re.sub(r'[\s_]+', '-', slug)
        return re.sub(r'-+', '-', slug).strip('-') or "section"

    def _slugify(self, text: str) -> str:
        """Slug that is unique among the anchors of the current document."""
        slug = self._slug(text)
        count = self._slugs.get(slug, 0) + 1
        self._slugs[slug] = count
        return slug if count == 1 else f"{slug}-{count}"

    # ------------------------------------------------------------------
    # Markdown
    # ------------------------------------------------------------------

    def outline_to_markdown(self, outline: OutlineResult) -> str:
        lines = [f"# {outline.title}", ""]
        for i, item in enumerate(outline.structure, 1):
            lines.append(f"{i}. {item.heading}")
            for sub in item.subheadings or []:
                lines.append(f"    - {sub}")
        lines.append("")
        return "\n".join(lines)

    def report_to_markdown(self, report: ReportResult, include_toc: Optional[bool] = None) -> str:
        if include_toc is None:
            include_toc = self.config.export.include_toc

        lines = [f"# {report.title}", ""]
        if include_toc:
            lines.append("## Table of Contents")
            lines.append("")
            for i, item in enumerate(report.report, 1):
                lines.append(f"{i}. {item.heading}")
            lines.append("")
            lines.append("---")
            lines.append("")

        for item in report.report:
            lines.append(f"## {item.heading}")
            lines.append("")
            for paragraph in item.content or []:
                lines.append(paragraph)
                lines.append("")
            for section in item.sections or []:
                lines.append(f"### {section.subheading}")
                lines.append("")
                for paragraph in section.content:
                    lines.append(paragraph)
                    lines.append("")
        return "\n".join(lines)

    # ------------------------------------------------------------------
    # HTML
    # ------------------------------------------------------------------

    def report_to_html(self, report: ReportResult) -> str:
        self._slugs = {}
        toc: List[Dict[str, str]] = []
        parts: List[str] = []

        for item in report.report:
            anchor = self._slugify(item.heading)
            toc.append({"id": anchor, "title": item.heading})

            # Model text is escaped before Markdown so raw HTML never reaches the page
            body = [f"## {escape(item.heading)}", ""]
            body.extend(f"{escape(p)}\n" for p in item.content or [])
            for section in item.sections or []:
                body.append(f"### {escape(section.subheading)}\n")
                body.extend(f"{escape(p)}\n" for p in section.content)

            parts.append(f'<section id="{anchor}">')
            parts.append(markdown.markdown("\n".join(body), extensions=["tables"]))
            parts.append("</section>")

        env = Environment(autoescape=True)
        template = env.from_string(HTML_TEMPLATE)
        return template.render(
            title=report.title,
            generated_date=datetime.now().strftime('%B %d, %Y at %H:%M'),
            section_count=len(report.report),
            toc=toc if self.config.export.include_toc else None,
            content=Markup("\n".join(parts)),
        )

    # ------------------------------------------------------------------
    # Plain text
    # ------------------------------------------------------------------

    def report_to_text(self, report: ReportResult) -> str:
        lines = [report.title, "=" * len(report.title), ""]
        for i, item in enumerate(report.report, 1):
            heading = f"{i}. {item.heading}"
            lines.extend([heading, "-" * len(heading), ""])
            for paragraph in item.content or []:
                lines.extend([paragraph, ""])
            for j, section in enumerate(item.sections or [], 1):
                lines.extend([f"{i}.{j} {section.subheading}", ""])
                for paragraph in section.content:
                    lines.extend([paragraph, ""])
        return "\n".join(lines)

    # ------------------------------------------------------------------

    def export(self, report: ReportResult, fmt: str) -> Tuple[str, str, str]:
        """Render *report* as *fmt*; returns (body, media type, filename)."""
        if fmt not in EXPORT_FORMATS:
            raise ValueError(
                f"Unknown export format {fmt!r}. Choose one of: {', '.join(EXPORT_FORMATS)}"
            )
        media_type, ext = EXPORT_FORMATS[fmt]
        if fmt == "markdown":
            body = self.report_to_markdown(report)
        elif fmt == "html":
            body = self.report_to_html(report)
        else:
            body = self.report_to_text(report)

        filename = f"{self._slug(report.title)[:80]}_report.{ext}"
        logger.info("Exported report %r as %s (%d chars)", report.title[:80], fmt, len(body))
        return body, media_type, filename
