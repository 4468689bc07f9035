"""Tools built at runtime.

Single-string tools, tools from a factory, tools closed over a user
context, and tools generated from an API description.

Run: python examples/02_tools/04_dynamic_tools.py
"""

import asyncio
import json
import math
from typing import Literal, Optional

from pydantic import Field

from stepwise.llm import (
    ChatModel,
    ModelConfig,
    Tool,
    execute_tool_calls,
    string_tool,
    tool,
    tool_from_fields,
)
from stepwise.utils import configure_logging, load_env

load_env()
configure_logging()


# 1. Single-string tools

echo = string_tool("echo", "Echoes back the input text exactly as received", lambda text: f"Echo: {text}")
reverse_text = string_tool("reverse_text", "Reverses the input text", lambda text: text[::-1])
count_characters = string_tool(
    "count_characters",
    "Counts the number of characters in the input text",
    lambda text: f"The text has {len(text)} characters",
)


# 2. Tools from a factory

def math_operation(
    name: str,
    description: str,
    operation: Literal["add", "subtract", "multiply", "divide", "power", "sqrt"],
) -> Tool:
    def run(a: float, b: Optional[float] = None) -> str:
        if operation == "add":
            result = a + (b or 0)
        elif operation == "subtract":
            result = a - (b or 0)
        elif operation == "multiply":
            result = a * (b if b is not None else 1)
        elif operation == "divide":
            if not b:
                return "Error: division by zero"
            result = a / b
        elif operation == "power":
            result = a ** (b if b is not None else 2)
        else:
            result = math.sqrt(a)
        return f"{operation}({a}{', ' + str(b) if b is not None else ''}) = {result}"

    return tool_from_fields(
        name,
        description,
        {
            "a": (float, Field(description="First number")),
            "b": (Optional[float], Field(default=None, description="Second number (if needed)")),
        },
        run,
    )


MATH_TOOLS = [
    math_operation("add_numbers", "Add two numbers together", "add"),
    math_operation("multiply_numbers", "Multiply two numbers", "multiply"),
    math_operation("square_root", "Calculate the square root of a number", "sqrt"),
]

COMPANIES = {
    "apple": {"name": "Apple Inc.", "ticker": "AAPL", "sector": "Technology", "employees": 161000},
    "google": {"name": "Alphabet Inc.", "ticker": "GOOGL", "sector": "Technology", "employees": 182000},
    "tesla": {"name": "Tesla, Inc.", "ticker": "TSLA", "sector": "Automotive", "employees": 140000},
}


def company_tool(key: str) -> Tool:
    info = COMPANIES[key]

    def lookup(field: Literal["name", "ticker", "sector", "employees", "all"] = "all") -> str:
        return json.dumps(info) if field == "all" else str(info[field])

    return tool_from_fields(
        f"get_{key}_info",
        f"Get information about {info['name']}",
        {"field": (Literal["name", "ticker", "sector", "employees", "all"], Field(default="all"))},
        lookup,
    )


# 3. Tools closed over a user context

def user_tools(user: dict) -> list:
    @tool(description="Get information about the current logged-in user")
    def get_current_user() -> dict:
        return user

    @tool
    def get_report(report_type: Literal["sales", "users", "billing"]) -> str:
        """Fetch an internal report. Requires the 'reports' permission.

        Args:
            report_type: Which report to fetch
        """
        if "reports" not in user["permissions"]:
            return f"Access denied: {user['name']} cannot read reports"
        return f"{report_type} report for {user['department']}: 42 entries"

    tools = [get_current_user, get_report]
    if user["role"] == "admin":

        @tool
        def admin_user_action(
            action: Literal["activate", "deactivate", "reset_password"], target_user_id: str
        ) -> str:
            """Perform an administrative action on another user.

            Args:
                action: Action to perform
                target_user_id: User the action applies to
            """
            return f"{user['name']} performed {action} on {target_user_id}"

        tools.append(admin_user_action)
    return tools


# 4. Tools generated from an API description

API_ENDPOINTS = [
    {
        "name": "list_products",
        "description": "List products, optionally filtered by category",
        "fields": {"category": (Optional[str], Field(default=None, description="Category filter"))},
        "handler": lambda category=None: f"Products{' in ' + category if category else ''}: laptop, phone",
    },
    {
        "name": "get_product",
        "description": "Get a product by its id",
        "fields": {"product_id": (str, Field(description="Product id"))},
        "handler": lambda product_id: json.dumps({"id": product_id, "name": "Laptop", "price": 999}),
    },
    {
        "name": "create_order",
        "description": "Create an order for a product",
        "fields": {
            "product_id": (str, Field(description="Product id")),
            "quantity": (int, Field(default=1, ge=1, description="Number of units")),
        },
        "handler": lambda product_id, quantity=1: f"Order created: {quantity} x {product_id}",
    },
]


def api_tools() -> list:
    return [
        tool_from_fields(ep["name"], ep["description"], ep["fields"], ep["handler"])
        for ep in API_ENDPOINTS
    ]


async def run(model: ChatModel, tools: list, question: str):
    bound = model.bind_tools(tools)
    response = await bound.ainvoke(question)
    print(f"\nUser: {question}")
    if not response.tool_calls:
        print(f"  Model: {response.content}")
        return
    for result in await execute_tool_calls(response.tool_calls, tools):
        print(f"  {result.name} [{result.status}] -> {result.content}")


async def main():
    config = ModelConfig(model="gpt-4.1-mini")
    model = ChatModel(config, client=config.create_client())

    print("=== 1. Single-string tools ===")
    await run(model, [echo, reverse_text, count_characters], "Reverse the text 'hello world'")

    print("\n=== 2. Factory tools ===")
    await run(model, MATH_TOOLS, "What is the square root of 144?")
    await run(model, [company_tool(key) for key in COMPANIES], "What is Tesla's ticker symbol?")

    print("\n=== 3. Context-bound tools ===")
    alice = {"id": "u1", "name": "Alice", "role": "admin", "department": "Sales", "permissions": ["reports"]}
    bob = {"id": "u2", "name": "Bob", "role": "viewer", "department": "Support", "permissions": []}
    print(f"Alice gets {[t.name for t in user_tools(alice)]}")
    print(f"Bob gets {[t.name for t in user_tools(bob)]}")
    await run(model, user_tools(bob), "Show me the sales report")

    print("\n=== 4. Tools from an API description ===")
    await run(model, api_tools(), "Order 3 units of product p-100")


if __name__ == "__main__":
    asyncio.run(main())
