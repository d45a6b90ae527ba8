"""Shell startup file writer.

Purpose
-------
Append validated ``export`` statements to a shell startup file inside a pair of
marker comments. The begin marker is the only idempotence mechanism: a file
that already carries it is left untouched.

Block layout::

    <blank line>
    # <label> environment variables
    export NAME="VALUE"
    ...
    # End <label> environment variables
    <blank line>
"""

from __future__ import annotations

from pathlib import Path
from typing import Sequence

from ...domain.settings import DEFAULT_MARKER_LABEL
from ...observability import log_debug, log_info


class MarkerShellConfigWriter:
    """Append marker-delimited export blocks; skip files that already have one."""

    def __init__(self, marker_label: str = DEFAULT_MARKER_LABEL) -> None:
        self.begin_marker = f"# {marker_label} environment variables"
        self.end_marker = f"# End {marker_label} environment variables"

    def render_block(self, commands: Sequence[str]) -> str:
        """Return the text appended for *commands*.

        Examples
        --------
        >>> MarkerShellConfigWriter("demo").render_block(['export A_B="1"'])
        '\\n# demo environment variables\\nexport A_B="1"\\n# End demo environment variables\\n\\n'
        """

        lines = [self.begin_marker, *commands, self.end_marker]
        return "\n" + "\n".join(lines) + "\n\n"

    def has_block(self, path: Path) -> bool:
        if not path.exists():
            return False
        content = path.read_text(encoding="utf-8", errors="replace")
        return self.begin_marker in content

    def append_block(self, path: Path, commands: Sequence[str]) -> bool:
        """Append *commands* to *path* unless the begin marker is already present.

        Missing parent directories are created. Filesystem failures propagate as
        :class:`OSError` so the caller can fall back to printing.

        Returns
        -------
        bool
            ``True`` when the block was written, ``False`` when it already existed.
        """

        if self.has_block(path):
            log_debug("shell_block_present", stage="materialize", key=None, path=str(path))
            return False
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("a", encoding="utf-8") as handle:
            handle.write(self.render_block(commands))
        log_info("shell_block_written", stage="materialize", key=None, path=str(path), commands=len(commands))
        return True
