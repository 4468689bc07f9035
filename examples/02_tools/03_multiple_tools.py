"""Several tools at once.

The model picks the right tool for each question, may request several calls
in one reply, and a small loop keeps going until it answers in text.

Run: python examples/02_tools/03_multiple_tools.py
"""

import asyncio
import ast
import operator
from datetime import datetime
from typing import Literal

from pydantic import Field

from stepwise.llm import (
    ChatModel,
    HumanMessage,
    ModelConfig,
    create_agent,
    execute_tool_calls,
    tool,
)
from stepwise.utils import configure_logging, load_env

load_env()
configure_logging()

_OPERATORS = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.Pow: operator.pow,
    ast.Mod: operator.mod,
    ast.USub: operator.neg,
}


def _evaluate(node):
    if isinstance(node, ast.Expression):
        return _evaluate(node.body)
    if isinstance(node, ast.Constant) and isinstance(node.value, (int, float)):
        return node.value
    if isinstance(node, ast.BinOp) and type(node.op) in _OPERATORS:
        return _OPERATORS[type(node.op)](_evaluate(node.left), _evaluate(node.right))
    if isinstance(node, ast.UnaryOp) and type(node.op) in _OPERATORS:
        return _OPERATORS[type(node.op)](_evaluate(node.operand))
    raise ValueError("Only arithmetic expressions are supported")


@tool
def calculator(expression: str) -> str:
    """Perform mathematical calculations. Use for any math operations.

    Args:
        expression: Mathematical expression to evaluate (e.g., '2 + 2', '10 * 5')
    """
    try:
        return f"Result: {_evaluate(ast.parse(expression, mode='eval'))}"
    except (SyntaxError, ValueError, ZeroDivisionError) as e:
        return f"Error: could not evaluate '{expression}' ({e})"


@tool
def get_weather(city: str) -> dict:
    """Get current weather for a city.

    Args:
        city: City name (e.g., 'London', 'Tokyo')
    """
    known = {
        "london": {"temp": 15, "condition": "Cloudy", "humidity": 80},
        "tokyo": {"temp": 22, "condition": "Sunny", "humidity": 60},
        "new york": {"temp": 18, "condition": "Partly cloudy", "humidity": 65},
        "paris": {"temp": 17, "condition": "Rainy", "humidity": 85},
        "sydney": {"temp": 25, "condition": "Clear", "humidity": 55},
    }
    return {"city": city, **known.get(city.lower(), {"temp": 20, "condition": "Unknown", "humidity": 50})}


_CONVERSIONS = {
    ("km", "miles"): lambda v: v * 0.621371,
    ("miles", "km"): lambda v: v * 1.60934,
    ("kg", "lbs"): lambda v: v * 2.20462,
    ("lbs", "kg"): lambda v: v * 0.453592,
    ("celsius", "fahrenheit"): lambda v: v * 9 / 5 + 32,
    ("fahrenheit", "celsius"): lambda v: (v - 32) * 5 / 9,
}


@tool
def convert_units(
    value: float,
    from_unit: Literal["km", "miles", "kg", "lbs", "celsius", "fahrenheit"],
    to_unit: Literal["km", "miles", "kg", "lbs", "celsius", "fahrenheit"],
) -> str:
    """Convert between units of measurement.

    Args:
        value: The value to convert
        from_unit: Source unit
        to_unit: Target unit
    """
    convert = _CONVERSIONS.get((from_unit, to_unit))
    if convert is None:
        return f"Cannot convert from {from_unit} to {to_unit}"
    return f"{value} {from_unit} = {convert(value):.2f} {to_unit}"


@tool
def get_datetime(
    format: Literal["full", "date", "time"] = Field(default="full", description="What to return")
) -> str:
    """Get the current date and/or time."""
    now = datetime.now()
    if format == "date":
        return now.strftime("%A, %B %d, %Y")
    if format == "time":
        return now.strftime("%H:%M:%S")
    return now.strftime("%A, %B %d, %Y %H:%M:%S")


TOOLS = [calculator, get_weather, convert_units, get_datetime]


async def tool_selection(model: ChatModel):
    print("=" * 60)
    print("1. Tool Selection")
    print("=" * 60)

    for question in [
        "What is 156 * 23?",
        "What's the weather in Tokyo?",
        "Convert 100 km to miles",
        "What time is it?",
        "Tell me a joke",
    ]:
        response = await model.ainvoke(question)
        if response.tool_calls:
            chosen = ", ".join(f"{tc.name}({tc.args})" for tc in response.tool_calls)
            print(f"\n{question}\n  -> {chosen}")
        else:
            print(f"\n{question}\n  -> no tool: {response.content[:60]}")


async def parallel_calls(model: ChatModel):
    print("\n" + "=" * 60)
    print("2. Parallel Tool Calls")
    print("=" * 60)

    question = "What's the weather in London and Paris? Also, what is 25 * 4?"
    print(f"\nUser: {question}")
    response = await model.ainvoke(question)
    print(f"Model requested {len(response.tool_calls)} call(s)")
    for result in await execute_tool_calls(response.tool_calls, TOOLS):
        print(f"  {result.name}: {result.content}")


async def manual_loop(model: ChatModel):
    print("\n" + "=" * 60)
    print("3. Manual Tool Loop")
    print("=" * 60)

    messages = [
        HumanMessage(
            content="I'm planning a trip. What's the weather in Sydney? "
            "Convert the temperature to Fahrenheit."
        )
    ]
    for _ in range(5):
        reply = await model.ainvoke(messages)
        messages.append(reply)
        if not reply.tool_calls:
            print(f"\nFinal answer: {reply.content}")
            return
        for result in await execute_tool_calls(reply.tool_calls, TOOLS):
            print(f"  {result.name} -> {result.content}")
            messages.append(result)
    print("\nStopped after 5 iterations")


async def agent_loop(config: ModelConfig):
    print("\n" + "=" * 60)
    print("4. The Same Loop With create_agent")
    print("=" * 60)

    agent = create_agent(config, tools=TOOLS, client=config.create_client())
    result = await agent.ainvoke(
        {"messages": [{"role": "user", "content": "How much is 72 fahrenheit in celsius, and what day is today?"}]}
    )
    print(f"\n{result['messages'][-1].content}")


async def main():
    config = ModelConfig(model="gpt-4.1-mini")
    model = ChatModel(config, client=config.create_client()).bind_tools(TOOLS)

    await tool_selection(model)
    await parallel_calls(model)
    await manual_loop(model)
    await agent_loop(config)


if __name__ == "__main__":
    asyncio.run(main())
