"""create_agent: the tool loop, prebuilt.

Streams each step as it happens, then shows the loop limit.

Run: python examples/02_tools/05_create_agent.py
"""

import asyncio

from stepwise.llm import ModelConfig, create_agent, tool
from stepwise.utils import configure_logging, load_env
from stepwise.utils.errors import AgentLoopLimitError

load_env()
configure_logging()

INVENTORY = {"laptop": 12, "phone": 0, "tablet": 5}
PRICES = {"laptop": 999.0, "phone": 599.0, "tablet": 399.0}


@tool
def check_stock(product: str) -> str:
    """Check how many units of a product are in stock.

    Args:
        product: Product name (laptop, phone or tablet)
    """
    if product.lower() not in INVENTORY:
        return f"Unknown product: {product}"
    return f"{INVENTORY[product.lower()]} units of {product} in stock"


@tool
def get_price(product: str) -> str:
    """Get the unit price of a product in USD.

    Args:
        product: Product name
    """
    price = PRICES.get(product.lower())
    return f"{product} costs ${price:.2f}" if price is not None else f"Unknown product: {product}"


async def main():
    config = ModelConfig(model="gpt-4.1-mini")
    agent = create_agent(
        config,
        tools=[check_stock, get_price],
        system_prompt="You are a store assistant. Use the tools to answer questions about products.",
        client=config.create_client(),
    )
    print(agent)

    question = "Are laptops in stock, and how much would 3 of them cost?"
    print(f"\nUser: {question}\n")
    async for update in agent.astream({"messages": [{"role": "user", "content": question}]}):
        for message in update.update["messages"]:
            if update.node_id == "model" and message.tool_calls:
                print(f"[{update.step}] model -> {', '.join(tc.name for tc in message.tool_calls)}")
            elif update.node_id == "model":
                print(f"[{update.step}] model: {message.content}")
            else:
                print(f"[{update.step}] {message.name}: {message.content}")

    print("\nWith max_iterations=1 the agent cannot finish a tool round:")
    limited = create_agent(config, tools=[check_stock], max_iterations=1, client=config.create_client())
    try:
        await limited.ainvoke("Is the tablet in stock?")
    except AgentLoopLimitError as e:
        print(f"  {e}")


if __name__ == "__main__":
    asyncio.run(main())
