"""Streaming a run and mixing async steps.

The same sequence is streamed in each mode: full state per step, the
partial update per step, and lifecycle events. One step is async, so the
async entry points are used.

Run: python examples/03_graph_basics/03_streaming.py
"""

import asyncio
from typing import Annotated, TypedDict

from stepwise import END, START, StateGraph, StreamMode, append
from stepwise.utils import GraphValidationError, NodeExecutionError, configure_logging

configure_logging()


class ResearchState(TypedDict):
    topic: str
    notes: Annotated[list[str], append]
    summary: str


def plan(state: ResearchState):
    return {"notes": [f"Plan research on {state['topic']}"]}


async def gather(state: ResearchState):
    await asyncio.sleep(0.1)
    return {"notes": ["Found 3 sources", "Extracted key facts"]}


def summarize(state: ResearchState):
    return {"summary": f"{state['topic']}: {len(state['notes'])} notes collected"}


def build():
    return (
        StateGraph(ResearchState)
        .add_sequence([plan, gather, summarize])
        .set_entry_point("plan")
        .set_finish_point("summarize")
        .compile()
    )


async def main():
    app = build()
    print(app)

    print("\n--- values ---")
    async for value in app.astream({"topic": "reducers"}, mode=StreamMode.VALUES):
        print(f"[{value.step}] {value.node_id}: {value.state}")

    print("\n--- updates ---")
    async for update in app.astream({"topic": "reducers"}, mode="updates"):
        print(f"[{update.step}] {update.node_id}: {update.update}")

    print("\n--- events ---")
    async for event in app.astream({"topic": "reducers"}, mode="events"):
        print(f"{event.type.value:20} {event.node_id or ''}")

    print("\nSync invoke refuses async steps:")
    try:
        app.invoke({"topic": "reducers"})
    except GraphValidationError as e:
        print(f"  {e}")

    print("\nA failing step aborts the run:")

    def broken(state):
        raise RuntimeError("source unavailable")

    failing = StateGraph(ResearchState).add_sequence([plan, broken])
    failing = failing.set_entry_point("plan").set_finish_point("broken").compile()
    try:
        failing.invoke({"topic": "reducers"})
    except NodeExecutionError as e:
        print(f"  {e} (caused by {type(e.__cause__).__name__})")


if __name__ == "__main__":
    asyncio.run(main())
