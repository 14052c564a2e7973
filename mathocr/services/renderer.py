"""
Рендеринг markdown с формулами в HTML.

Формулы ($$...$$, \\[...\\], \\(...\\), $...$) вырезаются до обработки
markdown, чтобы библиотека не портила "_" и "*" внутри них, и
возвращаются как экранированный текст в <span class="math ...">.
Набор формул выполняет KaTeX auto-render в браузере.
"""

import html
import re

import markdown

MARKDOWN_EXTENSIONS = ["tables", "fenced_code"]

KATEX_VERSION = "0.16.11"
KATEX_CDN = f"https://cdn.jsdelivr.net/npm/katex@{KATEX_VERSION}/dist"

# Порядок важен: $$ раньше $
_MATH_PATTERN = re.compile(
    r"(?P<display>\$\$.+?\$\$|\\\[.+?\\\])"
    r"|(?P<inline>\\\(.+?\\\)|(?<![\\$])\$(?!\s)[^$\n]+?(?<!\s)\$)",
    re.DOTALL,
)

_PLACEHOLDER = "MATHOCRMATH{}END"


def render_markdown(text: str) -> str:
    """
    Преобразует markdown с формулами в HTML фрагмент.

    Args:
        text: markdown (результат конвертации)

    Returns:
        str: HTML фрагмент
    """
    spans: list[str] = []

    def _stash(match: re.Match) -> str:
        css = "math display" if match.group("display") else "math inline"
        spans.append(f'<span class="{css}">{html.escape(match.group(0))}</span>')
        return _PLACEHOLDER.format(len(spans) - 1)

    shielded = _MATH_PATTERN.sub(_stash, text)
    rendered = markdown.markdown(shielded, extensions=MARKDOWN_EXTENSIONS)

    for index, span in enumerate(spans):
        rendered = rendered.replace(_PLACEHOLDER.format(index), span)
    return rendered


def render_page(text: str, title: str = "Typeset Preview") -> str:
    """Оборачивает фрагмент в HTML страницу с подключённым KaTeX."""
    return PAGE_TEMPLATE.format(
        title=html.escape(title),
        content=render_markdown(text),
        katex=KATEX_CDN,
    )


PAGE_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{title}</title>
    <link rel="stylesheet" href="{katex}/katex.min.css">
    <script defer src="{katex}/katex.min.js"></script>
    <script defer src="{katex}/contrib/auto-render.min.js"
        onload="renderMathInElement(document.body, {{delimiters: [
            {{left: '$$', right: '$$', display: true}},
            {{left: '\\\\[', right: '\\\\]', display: true}},
            {{left: '\\\\(', right: '\\\\)', display: false}},
            {{left: '$', right: '$', display: false}}
        ]}});"></script>
    <style>
        body {{
            font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
            max-width: 900px;
            margin: 0 auto;
            padding: 2rem;
            background: #0b111f;
            color: #e9f1ff;
            line-height: 1.7;
        }}
        h1 {{ border-bottom: 2px solid #5d8aff; padding-bottom: 0.5rem; }}
        pre, code {{ background: #15244f; border-radius: 6px; }}
        pre {{ padding: 1rem; overflow-x: auto; }}
        table {{ border-collapse: collapse; }}
        th, td {{ border: 1px solid #2a3a66; padding: 0.4rem 0.8rem; }}
    </style>
</head>
<body>
{content}
</body>
</html>
"""
