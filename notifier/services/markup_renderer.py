"""
Markup renderer.

Turns colored ``git log``/``git diff`` output into an HTML email body:

- Truncate the raw text if over the configured byte limit.
- Replace tabs with spaces.
- Encode HTML entities so that HTML in the diff doesn't get rendered.
- Convert ANSI color sequences into styled spans and add HTML line breaks.
- Prepend a link to the hosted provider's compare view when available.

Truncation comes first so the limit bounds the raw input rather than the
expanded markup.
"""

import html
import re
from typing import Dict, List, Optional

from notifier.models.notification import RenderedNotification
from notifier.models.repository import RepositoryRef
from notifier.models.revision import RevisionPair
from notifier.repository_identity import DEFAULT_PROVIDER_HOST, get_hosted_compare_url


TRUNCATION_MARKER = " ... [truncated]"

PROVIDER_LABELS = {"github.com": "GitHub"}

# xterm default palette for the 16 basic colors
ANSI_COLORS = [
    "#000", "#A00", "#0A0", "#A50", "#00A", "#A0A", "#0AA", "#AAA",
    "#555", "#F55", "#5F5", "#FF5", "#55F", "#F5F", "#5FF", "#FFF",
]

_CSI_RE = re.compile(r'\x1b\[([0-9;?]*)([@-~])')
_STRAY_ESCAPE_RE = re.compile(r'\x1b\[?[0-9;?]*')

BODY_STYLE = (
    "font-family: courier, monospace; white-space: pre; background-color: #111; "
    "color: #aaa; padding: 5px; font-size: 12px"
)


def truncate_bytes(text: str, limit: Optional[int], marker: str = TRUNCATION_MARKER) -> str:
    """
    Cut ``text`` to at most ``limit`` UTF-8 bytes and append ``marker``.

    A character split by the cut is dropped. Text within the limit, or a
    limit of None, is returned unchanged.
    """
    if limit is None:
        return text
    encoded = text.encode("utf-8")
    if len(encoded) <= limit:
        return text
    return encoded[:limit].decode("utf-8", errors="ignore") + marker


def expand_tabs(text: str, width: Optional[int]) -> str:
    """Replace every tab with ``width`` spaces; no-op when width is unset or 0."""
    if not width:
        return text
    return text.replace("\t", " " * width)


def escape_markup(text: str) -> str:
    """Escape ``& < > " '`` so diff content cannot become markup."""
    return html.escape(text, quote=True)


def _xterm_256(index: int) -> str:
    if index < 16:
        return ANSI_COLORS[index]
    if index < 232:
        index -= 16
        levels = [0 if v == 0 else 55 + v * 40 for v in (index // 36, (index // 6) % 6, index % 6)]
        return "#{:02x}{:02x}{:02x}".format(*levels)
    gray = 8 + (index - 232) * 10
    return "#{0:02x}{0:02x}{0:02x}".format(gray)


class _SgrState:
    """Current text attributes while scanning SGR sequences."""

    def __init__(self):
        self.reset()

    def reset(self) -> None:
        self.fg: Optional[str] = None
        self.bg: Optional[str] = None
        self.bold = False
        self.faint = False
        self.italic = False
        self.underline = False
        self.strike = False
        self.inverse = False

    def apply(self, params: List[int]) -> None:
        i = 0
        while i < len(params):
            code = params[i]
            if code == 0:
                self.reset()
            elif code == 1:
                self.bold = True
            elif code == 2:
                self.faint = True
            elif code == 3:
                self.italic = True
            elif code == 4:
                self.underline = True
            elif code == 7:
                self.inverse = True
            elif code == 9:
                self.strike = True
            elif code == 22:
                self.bold = self.faint = False
            elif code == 23:
                self.italic = False
            elif code == 24:
                self.underline = False
            elif code == 27:
                self.inverse = False
            elif code == 29:
                self.strike = False
            elif 30 <= code <= 37:
                self.fg = ANSI_COLORS[code - 30]
            elif 90 <= code <= 97:
                self.fg = ANSI_COLORS[code - 90 + 8]
            elif 40 <= code <= 47:
                self.bg = ANSI_COLORS[code - 40]
            elif 100 <= code <= 107:
                self.bg = ANSI_COLORS[code - 100 + 8]
            elif code == 39:
                self.fg = None
            elif code == 49:
                self.bg = None
            elif code in (38, 48):
                color, consumed = self._extended_color(params[i + 1:])
                if color is not None:
                    if code == 38:
                        self.fg = color
                    else:
                        self.bg = color
                i += consumed
            i += 1

    @staticmethod
    def _extended_color(rest: List[int]):
        if len(rest) >= 2 and rest[0] == 5:
            return _xterm_256(max(0, min(rest[1], 255))), 2
        if len(rest) >= 4 and rest[0] == 2:
            r, g, b = (max(0, min(v, 255)) for v in rest[1:4])
            return f"#{r:02x}{g:02x}{b:02x}", 4
        return None, len(rest)

    def style(self) -> str:
        fg, bg = self.fg, self.bg
        if self.inverse:
            fg, bg = bg or "#111", fg or "#aaa"
        rules: Dict[str, str] = {}
        if fg:
            rules["color"] = fg
        if bg:
            rules["background-color"] = bg
        if self.bold:
            rules["font-weight"] = "bold"
        if self.faint:
            rules["opacity"] = "0.5"
        if self.italic:
            rules["font-style"] = "italic"
        decorations = [name for flag, name in ((self.underline, "underline"), (self.strike, "line-through")) if flag]
        if decorations:
            rules["text-decoration"] = " ".join(decorations)
        return ";".join(f"{name}:{value}" for name, value in rules.items())


def ansi_to_html(text: str) -> str:
    """
    Convert ANSI SGR sequences into inline-styled spans and newlines into ``<br>``.

    The input must already be entity-escaped. CSI sequences other than SGR
    and dangling escape characters are dropped.
    """
    state = _SgrState()
    out: List[str] = []
    span_open = False
    pos = 0

    def emit_text(chunk: str) -> None:
        chunk = _STRAY_ESCAPE_RE.sub("", chunk).replace("\x1b", "")
        out.append(chunk.replace("\r\n", "\n").replace("\n", "<br>"))

    for match in _CSI_RE.finditer(text):
        emit_text(text[pos:match.start()])
        pos = match.end()

        if match.group(2) != "m":
            continue

        raw_params = match.group(1)
        params = [int(p) if p.isdigit() else 0 for p in raw_params.split(";")] if raw_params else [0]
        state.apply(params)

        if span_open:
            out.append("</span>")
            span_open = False
        style = state.style()
        if style:
            out.append(f'<span style="{style}">')
            span_open = True

    emit_text(text[pos:])
    if span_open:
        out.append("</span>")

    return "".join(out)


class MarkupRenderer:
    """Renders raw colored change text into a notification."""

    def __init__(
        self,
        size_limit_bytes: Optional[int] = None,
        tab_width: Optional[int] = None,
        provider_host: str = DEFAULT_PROVIDER_HOST,
    ):
        """
        Initialize the renderer.

        Args:
            size_limit_bytes: Byte ceiling for raw text (None disables)
            tab_width: Spaces per tab (None or 0 keeps tabs)
            provider_host: Host whose compare view gets linked
        """
        self.size_limit_bytes = size_limit_bytes
        self.tab_width = tab_width
        self.provider_host = provider_host

    def convert_text(self, ansi_text: str) -> str:
        """Truncate, expand tabs, escape and convert colors, in that order."""
        text = truncate_bytes(ansi_text, self.size_limit_bytes)
        text = expand_tabs(text, self.tab_width)
        text = escape_markup(text)
        return ansi_to_html(text)

    def build_html(self, repo: RepositoryRef, ansi_text: str, revisions: RevisionPair) -> str:
        header_html = ""
        compare_url = get_hosted_compare_url(
            repo.url, revisions.local, revisions.remote, host=self.provider_host
        )
        if compare_url:
            label = PROVIDER_LABELS.get(self.provider_host, self.provider_host)
            header_html = (
                f'<a href="{escape_markup(compare_url)}">'
                f'View this diff on {escape_markup(label)}</a><br><br>'
            )

        return (
            '<!doctype html>\n'
            '<html>'
            '<head>'
            '<meta charset="utf-8">'
            '</head>'
            '<body>'
            f'{header_html}'
            f'<div style="{BODY_STYLE}">{self.convert_text(ansi_text)}</div>'
            '</body>'
            '</html>'
        )

    def build_subject(self, repo: RepositoryRef, revisions: RevisionPair) -> str:
        return (
            f"[Git] new commits in {repo.handle} "
            f"{revisions.short_local}..{revisions.short_remote}"
        )

    def render(self, repo: RepositoryRef, ansi_text: str, revisions: RevisionPair) -> RenderedNotification:
        """
        Render change text for ``repo`` into subject and HTML body.

        Args:
            repo: Repository the changes belong to
            ansi_text: Raw colored log and diff text
            revisions: Local and remote tips of the range

        Returns:
            RenderedNotification
        """
        return RenderedNotification(
            subject=self.build_subject(repo, revisions),
            html_body=self.build_html(repo, ansi_text, revisions),
        )


def get_markup_renderer() -> MarkupRenderer:
    """
    Factory function to create MarkupRenderer with settings from config.
    """
    from notifier.config import settings

    return MarkupRenderer(
        size_limit_bytes=settings.ansi_size_limit_bytes,
        tab_width=settings.tabs_to_spaces,
        provider_host=settings.hosted_provider_host,
    )
