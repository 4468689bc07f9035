"""Streaming replies token by token.

Compares ainvoke() with astream(), rebuilds a full reply from chunks, reads
usage from the final chunk and consumes tagged stream events.

Run: python examples/01_fundamentals/04_streaming.py
"""

import asyncio
import time

from stepwise.llm import ChatModel, HumanMessage, ModelConfig, SystemMessage
from stepwise.utils import configure_logging, load_env
from stepwise.utils.errors import LLMError

load_env()
configure_logging()


async def demo_invoke_vs_stream(model: ChatModel):
    print("=" * 60)
    print("DEMO 1: ainvoke() vs astream()")
    print("=" * 60)

    prompt = "Write a haiku about programming."

    start = time.perf_counter()
    response = await model.ainvoke(prompt)
    invoke_ms = (time.perf_counter() - start) * 1000
    print(f"\nainvoke():\n  Response: {response.content}\n  Total time: {invoke_ms:.0f}ms")

    print("\nastream():\n  Response: ", end="", flush=True)
    start = time.perf_counter()
    first_token_ms = None
    count = 0
    async for chunk in model.astream(prompt):
        if not chunk.content:
            continue
        if first_token_ms is None:
            first_token_ms = (time.perf_counter() - start) * 1000
        print(chunk.content, end="", flush=True)
        count += 1
    total_ms = (time.perf_counter() - start) * 1000

    print(f"\n  Time to first token: {first_token_ms or 0:.0f}ms")
    print(f"  Total time: {total_ms:.0f}ms")
    print(f"  Chunks received: {count}")


async def demo_typing_effect(model: ChatModel):
    print("\n" + "=" * 60)
    print("DEMO 2: Typing Effect")
    print("=" * 60)

    messages = [
        SystemMessage("You are a helpful assistant. Keep responses under 100 words."),
        HumanMessage("Explain what an API is to a 10 year old."),
    ]
    print("\n  ", end="")
    async for chunk in model.astream(messages):
        print(chunk.content, end="", flush=True)
        await asyncio.sleep(0.02)
    print("\n")


async def demo_collect_with_usage(model: ChatModel):
    print("=" * 60)
    print("DEMO 3: Collecting a Stream with Usage")
    print("=" * 60)

    full = None
    async for chunk in model.astream("Give me 3 random facts about Python."):
        full = chunk if full is None else full + chunk
        print(".", end="", flush=True)

    print(" Done!\n")
    print(f"Collected response:\n  {full.content}")
    if full.usage:
        print(f"\n  Input tokens: {full.usage.input_tokens}")
        print(f"  Output tokens: {full.usage.output_tokens}")


async def demo_stream_events(model: ChatModel):
    print("\n" + "=" * 60)
    print("DEMO 4: Stream Events")
    print("=" * 60 + "\n")

    async for event in model.astream_events("Say hello in 3 languages."):
        if event.event == "on_chat_model_start":
            print("  Model started processing...")
        elif event.event == "on_chat_model_stream":
            print(event.data["chunk"].content, end="", flush=True)
        elif event.event == "on_chat_model_end":
            print("\n  Model finished!")


async def demo_stream_errors():
    print("\n" + "=" * 60)
    print("DEMO 5: Handling Stream Errors")
    print("=" * 60 + "\n")

    config = ModelConfig(model="model-that-does-not-exist")
    broken = ChatModel(config, client=config.create_client())
    try:
        async for chunk in broken.astream("Say hello"):
            print(chunk.content, end="")
    except LLMError as e:
        print(f"  Stream error: {e}")


async def main():
    config = ModelConfig(model="gpt-4.1-mini", temperature=0.7)
    model = ChatModel(config, client=config.create_client())

    await demo_invoke_vs_stream(model)
    await demo_typing_effect(model)
    await demo_collect_with_usage(model)
    await demo_stream_events(model)
    await demo_stream_errors()


if __name__ == "__main__":
    asyncio.run(main())
