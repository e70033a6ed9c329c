"""
Episode Renderer
================

Renders episode lists as plain text, Markdown or HTML and writes them to the
output files derived from the feed list's path.

Rendering is a pure function of the episode list; episodes are never
modified.
"""

import html
from enum import Enum
from pathlib import Path
from typing import Iterable, List, Sequence, Union

from ..models import Episode
from ..utils.logging import get_logger_for_component
from ..utils.exceptions import RenderError, ErrorCode


ALL_EPISODES_HEADING = "All Podcast Episodes"
NEWEST_EPISODES_HEADING = "Newest Podcast Episodes"

HTML_STYLE = """\
        body { font-family: Arial, sans-serif; margin: 20px; }
        h1 { color: #333; }
        .episode { margin-bottom: 30px; border-bottom: 1px solid #eee; padding-bottom: 20px; }
        .feed-name { font-size: 1.5em; color: #2c3e50; margin-bottom: 5px; }
        .episode-title { font-weight: bold; font-size: 1.2em; }
        .date { color: #7f8c8d; margin-bottom: 10px; }
        .media-link { margin-top: 10px; }
        .media-link a { color: #3498db; text-decoration: none; }
        .media-link a:hover { text-decoration: underline; }"""


class OutputFormat(str, Enum):
    """Available output formats."""
    PLAIN = "plain"
    MARKDOWN = "markdown"
    HTML = "html"

    @property
    def extension(self) -> str:
        return _EXTENSIONS[self]

    @classmethod
    def parse(cls, value: Union[str, "OutputFormat"]) -> "OutputFormat":
        """Resolve a format name or file extension (``txt``, ``md``, ``html``).

        Raises:
            ValueError: If the name is not a known format
        """
        if isinstance(value, OutputFormat):
            return value

        key = str(value).strip().lower().lstrip(".")
        if key in _ALIASES:
            return _ALIASES[key]

        known = ", ".join(sorted(_ALIASES))
        raise ValueError(f"Unknown output format '{value}' (expected one of: {known})")


_EXTENSIONS = {
    OutputFormat.PLAIN: "txt",
    OutputFormat.MARKDOWN: "md",
    OutputFormat.HTML: "html",
}

_ALIASES = {
    "plain": OutputFormat.PLAIN,
    "txt": OutputFormat.PLAIN,
    "text": OutputFormat.PLAIN,
    "markdown": OutputFormat.MARKDOWN,
    "md": OutputFormat.MARKDOWN,
    "html": OutputFormat.HTML,
    "htm": OutputFormat.HTML,
}


def all_view_path(source_list_path: Union[str, Path], fmt: OutputFormat) -> Path:
    """The feed list's path with its extension replaced by the format's."""
    return Path(source_list_path).with_suffix(f".{fmt.extension}")


def newest_view_path(source_list_path: Union[str, Path], fmt: OutputFormat) -> Path:
    """``newest.<ext>`` next to the feed list."""
    return Path(source_list_path).parent / f"newest.{fmt.extension}"


class EpisodeRenderer:
    """Formats episode lists for output files."""

    def __init__(self):
        self.logger = get_logger_for_component("renderer")

    def render(
        self,
        episodes: Iterable[Episode],
        fmt: Union[str, OutputFormat],
        heading: str = ALL_EPISODES_HEADING,
    ) -> str:
        """Render episodes in the requested format.

        Args:
            episodes: Episodes in output order
            fmt: Output format or alias
            heading: Document heading (unused by the plain format)

        Returns:
            Rendered text

        Raises:
            RenderError: If the format is unknown
        """
        try:
            output_format = OutputFormat.parse(fmt)
        except ValueError as e:
            raise RenderError(str(e), error_code=ErrorCode.OUTPUT_UNKNOWN_FORMAT) from e

        episodes = list(episodes)

        if output_format == OutputFormat.MARKDOWN:
            return self._render_markdown(episodes, heading)
        if output_format == OutputFormat.HTML:
            return self._render_html(episodes, heading)
        return self._render_plain(episodes)

    def write(
        self,
        episodes: Iterable[Episode],
        path: Union[str, Path],
        fmt: Union[str, OutputFormat],
        heading: str = ALL_EPISODES_HEADING,
    ) -> Path:
        """Render episodes and write them to ``path`` as UTF-8.

        Returns:
            The written path

        Raises:
            RenderError: If the format is unknown or the file cannot be written
        """
        episodes = list(episodes)
        text = self.render(episodes, fmt, heading)
        path = Path(path)

        try:
            path.write_text(text, encoding="utf-8")
        except OSError as e:
            raise RenderError(f"Cannot write {path}: {e}", output_path=str(path)) from e

        self.logger.info(f"Wrote {len(episodes)} episodes to {path}")
        return path

    @staticmethod
    def _render_plain(episodes: Sequence[Episode]) -> str:
        lines = [
            f"{episode.source_name}: {episode.title} [{episode.date_label}] - {episode.media_address}"
            for episode in episodes
        ]
        return "".join(f"{line}\n" for line in lines)

    @staticmethod
    def _render_markdown(episodes: Sequence[Episode], heading: str) -> str:
        parts = [f"# {heading}\n\n"]
        for episode in episodes:
            parts.append(
                f"## {episode.source_name}\n\n"
                f"**{episode.title}** [{episode.date_label}]\n\n"
                f"[Listen]({episode.media_address})  \n\n"
            )
        return "".join(parts)

    @staticmethod
    def _render_html(episodes: Sequence[Episode], heading: str) -> str:
        escaped_heading = html.escape(heading)
        lines: List[str] = [
            "<!DOCTYPE html>",
            "<html>",
            "<head>",
            '    <meta charset="UTF-8">',
            f"    <title>{escaped_heading}</title>",
            "    <style>",
            HTML_STYLE,
            "    </style>",
            "</head>",
            "<body>",
            f"    <h1>{escaped_heading}</h1>",
        ]

        for episode in episodes:
            lines.extend([
                '    <div class="episode">',
                f'        <div class="feed-name">{html.escape(episode.source_name)}</div>',
                f'        <div class="episode-title">{html.escape(episode.title)}</div>',
                f'        <div class="date">{episode.date_label}</div>',
                f'        <div class="media-link"><a href="{html.escape(episode.media_address)}">Listen</a></div>',
                "    </div>",
            ])

        lines.extend(["</body>", "</html>"])
        return "\n".join(lines) + "\n"
