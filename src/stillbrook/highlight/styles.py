from __future__ import annotations

import re

STYLE_ELEMENT_ID = "stillbrook-highlight-styles"

NEGATIVE_CLASS = "negative-result-highlight"
POSITIVE_CLASS = "positive-result-highlight"
KEYWORD_CLASS = "result-keyword-highlight"

NEGATIVE_COLOR = "#f44336"
POSITIVE_COLOR = "#4caf50"

_HEAD_CLOSE_RE = re.compile(r"</head\s*>", re.IGNORECASE)

HIGHLIGHT_CSS = f"""
<style id="{STYLE_ELEMENT_ID}">
  .{NEGATIVE_CLASS} {{
    border: 3px solid {NEGATIVE_COLOR} !important;
    border-radius: 8px !important;
    padding: 8px !important;
    margin: 8px 0 !important;
    box-shadow: 0 2px 8px rgba(0,0,0,0.1) !important;
  }}
  .{POSITIVE_CLASS} {{
    border: 3px solid {POSITIVE_COLOR} !important;
    border-radius: 8px !important;
    padding: 8px !important;
    margin: 8px 0 !important;
    box-shadow: 0 2px 8px rgba(0,0,0,0.1) !important;
  }}
  .{KEYWORD_CLASS} {{
    background-color: #ffeb3b;
    padding: 2px 4px;
    border-radius: 2px;
  }}
  .result-preview-root {{
    font-family: arial, sans-serif;
    padding: 15px;
    margin: 0 auto;
    background: white;
  }}
  .result-preview-root.standard {{ max-width: 600px; }}
  .result-preview-root.image {{ max-width: 1200px; }}
  .result-summary {{
    margin-bottom: 25px;
    color: #70757a;
    font-size: 13px;
  }}
  .result-container {{
    margin: 16px 0;
    border-radius: 8px;
    padding: 12px;
    background: white;
  }}
  .result-container.image-card {{
    display: inline-block;
    width: 200px;
    margin: 8px;
    vertical-align: top;
    padding: 8px;
  }}
  .result-image-frame {{
    position: relative;
    width: 100%;
    height: 200px;
    background: #f0f0f0;
    border-radius: 4px;
    overflow: hidden;
    border: 1px solid #e0e0e0;
  }}
  .result-container.{NEGATIVE_CLASS} .result-image-frame {{
    border: 3px solid {NEGATIVE_COLOR} !important;
  }}
  .result-container.{POSITIVE_CLASS} .result-image-frame {{
    border: 3px solid {POSITIVE_COLOR} !important;
  }}
  .result-image-title {{
    padding: 8px 4px;
    font-size: 12px;
    line-height: 1.3;
    color: #202124;
  }}
</style>
"""


def ensure_styles_injected(html: str) -> str:
    """Add the highlight stylesheet once; before </head> when the page has one."""
    if STYLE_ELEMENT_ID in html:
        return html
    match = _HEAD_CLOSE_RE.search(html)
    if match is None:
        return HIGHLIGHT_CSS + html
    return html[: match.start()] + HIGHLIGHT_CSS + html[match.start() :]


def wrapper_style(color: str, *, display: str = "block") -> str:
    """Inline style for the div wrapped around an image or shopping result."""
    return (
        f"border: 3px solid {color} !important; border-radius: 8px !important; "
        "padding: 8px !important; margin: 8px !important; "
        "background: rgba(255, 235, 59, 0.05) !important; "
        f"display: {display} !important;"
    )
