"""Agent = model + tools + loop.

The agent is asked for the Bitcoin price, calls a tool that fetches it from
CoinGecko, and answers from the result. The transcript is printed by
switching on each entry's kind.

Run: python examples/02_tools/01_agents.py
"""

import asyncio

import httpx

from stepwise.llm import ModelConfig, TranscriptKind, create_agent, describe_messages, tool
from stepwise.utils import configure_logging, load_env

load_env()
configure_logging()

COINGECKO_URL = "https://api.coingecko.com/api/v3/simple/price"


@tool
async def get_bitcoin_price() -> dict:
    """Get the current Bitcoin price in USD, BRL, and EUR."""
    async with httpx.AsyncClient(timeout=10.0) as client:
        response = await client.get(
            COINGECKO_URL, params={"ids": "bitcoin", "vs_currencies": "usd,brl,eur"}
        )
        response.raise_for_status()
        return response.json()["bitcoin"]


async def main():
    print("Simple Agent Demo\n")

    config = ModelConfig.parse("openai:gpt-4o-mini")
    agent = create_agent(
        config,
        tools=[get_bitcoin_price],
        system_prompt=(
            "You are a helpful assistant. When asked about Bitcoin price, "
            "use the get_bitcoin_price tool."
        ),
        client=config.create_client(),
    )

    print("User: What is the current Bitcoin price?\n")
    result = await agent.ainvoke(
        {"messages": [{"role": "user", "content": "What is the current Bitcoin price?"}]}
    )

    for entry in describe_messages(result["messages"]):
        if entry.kind == TranscriptKind.ASSISTANT_WITH_CALL:
            print("Agent: I need to check the current price...")
            print(f"       -> Calling: {entry.tool_calls[0].name}()\n")
        elif entry.kind == TranscriptKind.TOOL_RESULT:
            print(f"Tool result: {entry.content}\n")
        elif entry.kind == TranscriptKind.ASSISTANT_FINAL:
            print(f"Agent: {entry.content}")


if __name__ == "__main__":
    asyncio.run(main())
