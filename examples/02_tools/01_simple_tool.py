"""Your first tool.

The model sees the tool's name, description and argument schema, decides to
call it, and we run the call ourselves.

Run: python examples/02_tools/01_simple_tool.py
"""

import asyncio
from typing import Annotated

from pydantic import Field

from stepwise.llm import ChatModel, ModelConfig, tool
from stepwise.utils import configure_logging, load_env

load_env()
configure_logging()


@tool(description="Greet a person by their name. Use this when someone asks to be greeted.")
def greet(name: Annotated[str, Field(description="The name of the person to greet")]) -> str:
    return f"Hello, {name}! Welcome to the world of AI agents!"


async def main():
    print("=== Simple Tool Demo ===\n")

    print("Tool definition:")
    print(f"  Name: {greet.name}")
    print(f"  Description: {greet.description}\n")

    config = ModelConfig(model="gpt-4.1-mini")
    model = ChatModel(config, client=config.create_client()).bind_tools([greet])

    print('User: "Please greet Maria"\n')
    response = await model.ainvoke("Please greet Maria")

    if response.tool_calls:
        call = response.tool_calls[0]
        print("Model decided to use a tool!")
        print(f"  Tool: {call.name}")
        print(f"  Arguments: {call.args}\n")
        print(f"Tool result: {await greet.ainvoke(call)}")
    else:
        print(f"Model response: {response.content}")


if __name__ == "__main__":
    asyncio.run(main())
