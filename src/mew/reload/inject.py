"""Content injection — embed the reload client in served HTML.

The script goes immediately before the last ``</body>`` (any case). Pages
without one get the script appended. Nothing else in the document changes.
"""

from __future__ import annotations

import re

_BODY_CLOSE = re.compile(r"</body\s*>", re.IGNORECASE)


def inject_script(html: str, script: str) -> str:
    """Return ``html`` with ``script`` inserted before ``</body>`` or appended."""
    last = None
    for last in _BODY_CLOSE.finditer(html):
        pass
    if last is None:
        return html + script
    at = last.start()
    return html[:at] + script + html[at:]
