"""Hello LLM: a single chat call.

Sends one user message and prints the reply together with the model name
and token usage.

Run: python examples/01_fundamentals/01_hello_llm.py
"""

import asyncio

from stepwise.llm import ChatModel, HumanMessage, ModelConfig
from stepwise.utils import configure_logging, load_env

# Load environment variables from .env file
load_env()
configure_logging()


async def main():
    config = ModelConfig(provider="openai", model="gpt-4.1-mini", temperature=0)
    model = ChatModel(config, client=config.create_client())

    print("Sending message...\n")
    response = await model.ainvoke([HumanMessage("Hello! What is a state graph in one sentence?")])

    print("Response:")
    print(response.content)

    print("\nMetadata:")
    print(f"- Model: {response.response_metadata.get('model')}")
    if response.usage:
        print(f"- Input tokens: {response.usage.input_tokens}")
        print(f"- Output tokens: {response.usage.output_tokens}")


if __name__ == "__main__":
    asyncio.run(main())
