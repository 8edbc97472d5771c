"""Graphviz rendering boundary.

The DOT text is handed to an external ``dot`` process as opaque I/O. A
failure is logged and raised as RenderError; nothing is retried and any
partially written image is left where it is. The GraphStore is never
touched here, so a failed export can be retried with other settings.
"""

from __future__ import annotations

import shutil
import subprocess
from typing import TYPE_CHECKING

from valuetrace.config import RenderConfig
from valuetrace.graph.errors import RenderError
from valuetrace.observability.logging import get_logger

if TYPE_CHECKING:
    from pathlib import Path

    from valuetrace.graph.store import GraphStore

log = get_logger(__name__)


def write_dot(text: str, path: Path) -> Path:
    """Write a DOT document to *path*, creating parent directories.

    Returns:
        The path written.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    log.debug("dot_written", path=str(path), size=len(text))
    return path


def render_image(
    text: str,
    output_path: Path,
    *,
    fmt: str | None = None,
    executable: str | None = None,
    timeout: float | None = None,
) -> Path:
    """Render a DOT document to an image with Graphviz.

    Args:
        text: DOT document.
        output_path: Image file to produce.
        fmt: Graphviz output format. Defaults to the output suffix, else png.
        executable: Graphviz binary. Defaults to ``dot``.
        timeout: Seconds before the renderer is abandoned.

    Returns:
        *output_path* on success.

    Raises:
        RenderError: If the renderer is missing, fails, or times out.
    """
    fmt = fmt or output_path.suffix.lstrip(".") or "png"
    executable = executable or "dot"

    binary = shutil.which(executable)
    if binary is None:
        log.error("render_failed", reason="executable_not_found", executable=executable)
        raise RenderError(output_path, f"Graphviz executable '{executable}' not found")

    output_path.parent.mkdir(parents=True, exist_ok=True)
    cmd = [binary, f"-T{fmt}", "-o", str(output_path)]
    log.debug("render_started", cmd=cmd)

    try:
        result = subprocess.run(
            cmd,
            input=text,
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired as e:
        log.error("render_failed", reason="timeout", timeout=timeout, output=str(output_path))
        raise RenderError(output_path, f"Renderer timed out after {timeout}s") from e
    except OSError as e:
        log.error("render_failed", reason="os_error", error=str(e), output=str(output_path))
        raise RenderError(output_path, str(e)) from e

    if result.returncode != 0:
        log.error(
            "render_failed",
            reason="nonzero_exit",
            returncode=result.returncode,
            stderr=result.stderr.strip(),
            output=str(output_path),
        )
        raise RenderError(
            output_path,
            "Renderer reported an error",
            returncode=result.returncode,
            stderr=result.stderr,
        )

    log.info("render_complete", output=str(output_path), format=fmt)
    return output_path


def export_graph(
    store: GraphStore,
    output_path: Path,
    config: RenderConfig | None = None,
    *,
    fmt: str | None = None,
) -> Path:
    """Serialize *store* and render it next to a ``.dot`` copy.

    The ``.dot`` file is written first and removed only when rendering
    succeeded and ``config.keep_dot`` is false.

    Args:
        store: Graph to export.
        output_path: Image path. Its suffix selects the format; without a
            suffix ``config.output_format`` is appended.
        config: Render settings.
        fmt: Graphviz output format. Takes priority over the suffix of
            *output_path*.

    Returns:
        Path to the rendered image.

    Raises:
        RenderError: If rendering fails. The ``.dot`` file is kept.
        ValueError: If *output_path* itself ends in ``.dot``.
    """
    config = config or RenderConfig()
    text = store.render(config)
    if not output_path.suffix:
        output_path = output_path.with_suffix(f".{config.output_format}")
    if output_path.suffix == ".dot":
        raise ValueError(f"Image path must not be a .dot file: {output_path}")
    dot_path = write_dot(text, output_path.with_suffix(".dot"))

    render_image(
        text,
        output_path,
        fmt=fmt or output_path.suffix.lstrip(".") or config.output_format,
        executable=config.dot_executable,
        timeout=config.timeout_seconds,
    )

    if not config.keep_dot:
        dot_path.unlink(missing_ok=True)
    return output_path
