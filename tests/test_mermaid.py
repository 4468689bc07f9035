"""Tests for Mermaid diagram generation and image export."""

import base64
from pathlib import Path

import httpx
import pytest

from stepwise import StateGraph
from stepwise.utils import mermaid
from stepwise.utils.mermaid import generate_mermaid_code, save_mermaid_image

from conftest import GraphState, node_a


def test_flowchart(two_step_graph):
    code = generate_mermaid_code(two_step_graph)

    assert code.splitlines()[:8] == [
        "flowchart TD",
        "    START((start))",
        "    node_a[node_a]",
        "    node_b[node_b]",
        "    END(((end)))",
        "    START --> node_a",
        "    node_a --> node_b",
        "    node_b --> END",
    ]
    assert "    class START,END markerNode" in code
    assert "    class node_a,node_b stepNode" in code


def test_title_and_direction(two_step_graph):
    code = two_step_graph.mermaid_code(title="Two Nodes", direction="LR")

    assert code.startswith("---\ntitle: Two Nodes\n---\nflowchart LR\n")


def test_invalid_direction(two_step_graph):
    with pytest.raises(ValueError, match="Invalid direction"):
        generate_mermaid_code(two_step_graph, direction="BT")


class FakeHttpClient:
    """Stands in for httpx.Client and records the requested URL."""

    requests = []

    def __init__(self, timeout=None):
        self.timeout = timeout

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        return False

    def get(self, url, params=None):
        FakeHttpClient.requests.append((url, params))
        request = httpx.Request("GET", url, params=params)
        return httpx.Response(200, content=b"\x89PNG fake", request=request)


@pytest.fixture
def fake_http(monkeypatch):
    FakeHttpClient.requests = []
    monkeypatch.setattr(mermaid.httpx, "Client", FakeHttpClient)
    return FakeHttpClient


def test_save_png(tmp_path, fake_http):
    output = tmp_path / "out" / "graph.png"

    path = save_mermaid_image("flowchart TD\n    A --> B", str(output))

    assert path == str(output.absolute())
    assert output.read_bytes() == b"\x89PNG fake"
    url, params = fake_http.requests[0]
    encoded = base64.urlsafe_b64encode(b"flowchart TD\n    A --> B").decode()
    assert url == f"https://mermaid.ink/img/{encoded}"
    assert params == {"type": "png"}


def test_save_svg_with_theme(tmp_path, fake_http):
    save_mermaid_image("flowchart TD", str(tmp_path / "graph.svg"), image_format="svg", theme="dark")

    url, params = fake_http.requests[0]
    assert url.startswith("https://mermaid.ink/svg/")
    assert params == {"theme": "dark"}


def test_invalid_format(tmp_path):
    with pytest.raises(ValueError, match="Invalid format"):
        save_mermaid_image("flowchart TD", str(tmp_path / "graph.gif"), image_format="gif")


def test_builder_save_visualization(tmp_path, monkeypatch, fake_http):
    monkeypatch.chdir(tmp_path)
    graph = StateGraph(GraphState).add_node("node_a", node_a)
    graph.set_entry_point("node_a").set_finish_point("node_a")

    path = graph.save_visualization(title="My Graph")

    saved = Path(path)
    assert saved.parent.name == "visualizations"
    assert saved.name.startswith("My_Graph_")
    assert saved.suffix == ".png"
    assert saved.exists()
