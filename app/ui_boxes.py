"""
HTML message boxes for the Streamlit pages.

Everything shown inside a box comes from user input, the spreadsheet or
the LLM, so all text is escaped before it reaches unsafe_allow_html.
"""

from html import escape


def message_box(css_class: str, heading: str, *paragraphs: str, level: int = 4) -> str:
    """Build a styled box: an escaped heading followed by escaped paragraphs."""
    lines = [f'<div class="{css_class}">', f"<h{level}>{escape(heading)}</h{level}>"]
    lines += [f"<p>{escape(paragraph)}</p>" for paragraph in paragraphs]
    lines.append("</div>")
    return "\n".join(lines)
