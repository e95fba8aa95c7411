from medcheck.rendering.text_renderer import (
    render_detail_html,
    render_detail_text,
    render_identified_drugs,
    render_result,
)

__all__ = [
    "render_detail_html",
    "render_detail_text",
    "render_identified_drugs",
    "render_result",
]
