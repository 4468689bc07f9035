"""Mermaid diagram visualization utilities for Stepwise graphs.

This module generates Mermaid flowchart code from a compiled SequenceGraph
and can save it as an image using the mermaid.ink API.
"""

import base64
from typing import Optional, TYPE_CHECKING
from pathlib import Path

import httpx

from stepwise.core.state import START, END

if TYPE_CHECKING:
    from stepwise.core.graph import SequenceGraph

VALID_FORMATS = ("png", "svg", "pdf")


def generate_mermaid_code(
    graph: "SequenceGraph",
    title: Optional[str] = None,
    direction: str = "TD",
) -> str:
    """Generate Mermaid flowchart code from a SequenceGraph.

    Args:
        graph: The compiled graph to visualize
        title: Optional title to display above the diagram
        direction: Flowchart direction - "TD" (top-down) or "LR" (left-right)

    Returns:
        String containing Mermaid flowchart code

    Example:
        >>> print(generate_mermaid_code(app, direction="LR"))
        flowchart LR
            START((start))
            node_a[node_a]
            ...
    """
    if direction not in ("TD", "LR"):
        raise ValueError(f"Invalid direction: {direction}. Must be 'TD' or 'LR'")

    lines = []
    if title:
        lines.append("---")
        lines.append(f"title: {title}")
        lines.append("---")

    lines.append(f"flowchart {direction}")

    lines.append(f"    {START}((start))")
    for node_id in graph.order:
        lines.append(f"    {node_id}[{node_id}]")
    lines.append(f"    {END}(((end)))")

    chain = [START] + list(graph.order) + [END]
    for source, target in zip(chain, chain[1:]):
        lines.append(f"    {source} --> {target}")

    lines.append("")
    lines.append("    classDef markerNode fill:#2d3748,stroke:#2d3748,color:#fff")
    lines.append("    classDef stepNode fill:#3182ce,stroke:#2c5282,color:#fff")
    lines.append(f"    class {START},{END} markerNode")
    if graph.order:
        lines.append(f"    class {','.join(graph.order)} stepNode")

    return "\n".join(lines)


def save_mermaid_image(
    mermaid_code: str,
    output_path: str,
    image_format: str = "png",
    theme: str = "default",
    timeout: float = 30.0,
) -> str:
    """Save Mermaid diagram as an image using mermaid.ink API.

    Args:
        mermaid_code: Mermaid diagram code to render
        output_path: Path where image should be saved
        image_format: Output format - "png", "svg", or "pdf"
        theme: Mermaid theme - "default", "dark", "forest", "neutral"
        timeout: HTTP timeout in seconds

    Returns:
        Path to saved image file

    Raises:
        httpx.HTTPError: If image generation fails
        ValueError: If invalid format specified
    """
    if image_format not in VALID_FORMATS:
        raise ValueError(f"Invalid format: {image_format}. Must be one of {list(VALID_FORMATS)}")

    output_file = Path(output_path)
    output_file.parent.mkdir(parents=True, exist_ok=True)

    encoded = base64.urlsafe_b64encode(mermaid_code.encode("utf-8")).decode("utf-8")

    # png is served from /img, the other formats from their own endpoint
    endpoint = "img" if image_format == "png" else image_format
    url = f"https://mermaid.ink/{endpoint}/{encoded}"

    params = {}
    if image_format == "png":
        params["type"] = "png"
    if theme != "default":
        params["theme"] = theme

    with httpx.Client(timeout=timeout) as client:
        response = client.get(url, params=params)
        response.raise_for_status()
        output_file.write_bytes(response.content)

    return str(output_file.absolute())


def get_default_visualization_dir() -> Path:
    """Get (and create) ./visualizations under the current directory."""
    vis_dir = Path.cwd() / "visualizations"
    vis_dir.mkdir(exist_ok=True)
    return vis_dir
