from __future__ import annotations
import json
import os
import socket
from dataclasses import asdict, dataclass
from datetime import datetime
from html import escape
from typing import List, Optional

from .drives import volume_for
from .models import UsageNode
from .utils import format_bytes

TIME_FORMAT = "%Y-%m-%d %H:%M:%S"

# -------------------- Style --------------------
PAGE_CSS = r"""
* { box-sizing: border-box; }
body { margin: 0; font-family: "Segoe UI", Helvetica, Arial, sans-serif; font-size: 12px;
       background: #0f1220; color: #1a2233; }
header { padding: 10px 14px; color: #dbe6ff; background: #16203a; border-bottom: 1px solid #2a3a5a; }
header b { color: #38d1c5; }
#status { padding: 6px 14px; color: #b7c3dd; background: #121826; min-height: 28px; }
#flame { padding: 8px; }
.node { display: inline-block; vertical-align: top; overflow: hidden; }
.title { height: 22px; line-height: 22px; padding: 0 4px; white-space: nowrap; overflow: hidden;
         text-overflow: ellipsis; border: 1px solid #0f1220; cursor: pointer; }
.title:hover { filter: brightness(0.85); }
.entries { display: flex; width: 100%; }
.aggregate > .title { font-style: italic; }
"""

PAGE_JS = r"""
document.querySelectorAll('.title').forEach(function (el) {
  el.addEventListener('click', function () {
    var n = el.parentElement;
    document.getElementById('status').textContent =
      (n.dataset.path || '/') + '  ' + el.title;
  });
});
"""

@dataclass
class ReportMeta:
    path: str
    hostname: str
    time: str
    volume: Optional[dict] = None

def build_meta(root_path: str) -> ReportMeta:
    return ReportMeta(
        path=os.path.abspath(root_path),
        hostname=socket.gethostname(),
        time=datetime.now().strftime(TIME_FORMAT),
        volume=volume_for(root_path),
    )

def width_style(n: UsageNode) -> str:
    if n.parent is None or n.parent.size == 0:
        return "width: 100%;"
    ratio = n.size / n.parent.size
    return f"width: {ratio * 100:.2f}%;"

def title_style(n: UsageNode) -> str:
    if n.parent is None or n.parent.size == 0:
        return "background-color: azure;"
    ratio = n.size / n.parent.size
    return f"background-color: rgb({int(100 + (1.0 - ratio) * 156.0)}, 255, 255);"

def _render_node(n: UsageNode, out: List[str]):
    cls = "node aggregate" if n.aggregate else "node"
    label = f"{n.name} ({format_bytes(n.size)})"
    out.append(
        f'<div class="{cls}" data-path="{escape(n.rel_path())}" data-size="{n.size}" '
        f'style="{width_style(n)}">'
        f'<div class="title" style="{title_style(n)}" title="{escape(label)}">{escape(label)}</div>'
    )
    if n.children:
        out.append('<div class="entries">')
        for c in n.children:
            _render_node(c, out)
        out.append("</div>")
    out.append("</div>")

def render_html(tree: UsageNode, meta: ReportMeta) -> str:
    body: List[str] = []
    _render_node(tree, body)

    vol_html = ""
    if meta.volume:
        v = meta.volume
        vol_html = (f" &nbsp;•&nbsp; volume {escape(v['mountpoint'])}: "
                    f"<b>{format_bytes(v['used'])}</b> of {format_bytes(v['total'])} used "
                    f"({v['percent']:.1f}%)")

    return f"""<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>duflame - {escape(meta.path)}</title>
<style>{PAGE_CSS}</style>
</head>
<body>
<header>
  <b>{escape(meta.path)}</b> &nbsp;•&nbsp; {format_bytes(tree.size)}
  &nbsp;•&nbsp; {escape(meta.hostname)} &nbsp;•&nbsp; {escape(meta.time)}{vol_html}
</header>
<div id="status"></div>
<div id="flame">{"".join(body)}</div>
<script>{PAGE_JS}</script>
</body>
</html>
"""

def write_report(out_path: str, tree: UsageNode, meta: ReportMeta):
    with open(out_path, "w", encoding="utf-8") as f:
        f.write(render_html(tree, meta))

def write_json(out_path: str, tree: UsageNode, meta: ReportMeta):
    data = asdict(meta)
    data["usage"] = tree.to_dict()
    with open(out_path, "w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, indent=2)
