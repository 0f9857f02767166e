from __future__ import annotations

from typing import Optional


def _esc(s: str) -> str:
    return (s or "").replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;").replace("'", "&#39;")


NAV_LINKS = (
    ("/", "Chat", "chat"),
    ("/api/endpoints", "Endpoints", "endpoints"),
    ("/health", "Health", "health"),
)


def nav_html(active: Optional[str] = None) -> str:
    """
    active: key of the NAV_LINKS entry to highlight.
    """
    active = (active or "").lower().strip()

    links = []
    for href, label, key in NAV_LINKS:
        cls = "navlink active" if active == key else "navlink"
        links.append(f"<a class='{cls}' href='{_esc(href)}'>{_esc(label)}</a>")

    return "<div class='nav'>" + "<span class='dot'>•</span>".join(links) + "</div>"


def page_html(
    title: str,
    body_html: str,
    *,
    active: Optional[str] = None,
    extra_css: str = "",
) -> str:
    """
    Wraps a page with shared CSS + nav.
    """
    return f"""<!doctype html>
<html>
<head>
  <meta charset="utf-8" />
  <meta name="viewport" content="width=device-width, initial-scale=1" />
  <title>{_esc(title)}</title>
  <style>
    body {{ font-family: system-ui, sans-serif; max-width: 820px; margin: 24px auto; padding: 0 16px; color:#0f172a; }}
    a {{ color:#2563eb; text-decoration:none; }}
    code {{ background:#f3f4f6; padding:2px 6px; border-radius:8px; }}
    label {{ font-weight:600; font-size:14px; }}

    .nav {{ margin-bottom: 16px; }}
    .nav .dot {{ margin: 0 6px; color:#94a3b8; }}
    .navlink {{ padding: 4px 8px; border-radius: 10px; }}
    .navlink.active {{ background:#0ea5e9; color:white; }}

    .card {{ border:1px solid #e5e7eb; border-radius:12px; padding:14px; margin:12px 0; }}
    .muted {{ color:#64748b; font-size: 12px; }}

    {extra_css}
  </style>
</head>
<body>
  {nav_html(active=active)}
  {body_html}
</body>
</html>
"""
