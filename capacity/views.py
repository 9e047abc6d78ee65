"""
HTML rendering for the status and admin pages.

Plain string templates; every value coming from configuration or the
request is escaped before it reaches the markup.
"""

from __future__ import annotations

from html import escape
from typing import List
from urllib.parse import quote

from capacity.models import StatusRow

_STYLE = """
body { font-family: system-ui, sans-serif; margin: 2rem; color: #222; }
table { border-collapse: collapse; min-width: 28rem; }
th, td { border: 1px solid #ccc; padding: .4rem .8rem; text-align: left; }
th { background: #f3f3f3; }
.full { color: #b00020; font-weight: bold; }
.open { color: #1b7f3b; }
form { display: inline; margin: 0 .2rem; }
input[type=number] { width: 5rem; }
"""


def _page(title: str, body: str) -> str:
    return (
        "<!DOCTYPE html>\n"
        "<html><head>"
        '<meta charset="utf-8">'
        f"<title>{escape(title)}</title>"
        f"<style>{_STYLE}</style>"
        "</head><body>"
        f"<h1>{escape(title)}</h1>"
        f"{body}"
        "</body></html>"
    )


def _state_cell(row: StatusRow) -> str:
    if row.full:
        return '<td class="full">FULL</td>'
    return f'<td class="open">{row.remaining} left</td>'


def render_status(rows: List[StatusRow]) -> str:
    """Public snapshot of every program."""
    lines = [
        "<table>",
        "<tr><th>Program</th><th>Registered</th><th>Limit</th><th>State</th></tr>",
    ]
    for row in rows:
        lines.append(
            "<tr>"
            f"<td>{escape(row.display_name)}</td>"
            f"<td>{row.count}</td>"
            f"<td>{row.limit}</td>"
            f"{_state_cell(row)}"
            "</tr>"
        )
    lines.append("</table>")
    return _page("Registration Status", "\n".join(lines))


def render_admin(rows: List[StatusRow], key: str) -> str:
    """
    Management view with add / cancel / set controls per program.

    The admin key is carried in each form's action URL so the POST
    endpoints can authorize the request.
    """
    qkey = quote(key, safe="")
    lines = [
        "<table>",
        "<tr><th>Program</th><th>Registered</th><th>Limit</th>"
        "<th>State</th><th>Actions</th></tr>",
    ]
    for row in rows:
        pid = quote(row.program_id, safe="")
        lines.append(
            "<tr>"
            f"<td>{escape(row.display_name)} <small>({escape(row.program_id)})</small></td>"
            f"<td>{row.count}</td>"
            f"<td>{row.limit}</td>"
            f"{_state_cell(row)}"
            "<td>"
            f'<form method="post" action="/admin/add/{pid}?key={qkey}">'
            '<button type="submit">+1</button></form>'
            f'<form method="post" action="/admin/cancel/{pid}?key={qkey}">'
            '<button type="submit">-1</button></form>'
            f'<form method="post" action="/admin/set/{pid}?key={qkey}">'
            f'<input type="number" name="newCount" min="0" value="{row.count}">'
            '<button type="submit">Set</button></form>'
            "</td>"
            "</tr>"
        )
    lines.append("</table>")
    return _page("Registration Admin", "\n".join(lines))
