"""Model providers and sampling parameters.

Shows how max_tokens and temperature change replies, then asks the same
question of every provider whose API key is set (OpenAI, Anthropic and
Google, all through their OpenAI-compatible endpoints).

Run: python examples/01_fundamentals/02_models_config.py
"""

import asyncio

from stepwise.llm import ChatModel, ModelConfig
from stepwise.utils import available_providers, configure_logging, load_env
from stepwise.utils.errors import StepwiseError

load_env()
configure_logging()

PROVIDER_MODELS = {
    "anthropic": "claude-sonnet-4-20250514",
    "openai": "gpt-4.1-mini",
    "google": "gemini-2.0-flash",
}


def openai_model(**params) -> ChatModel:
    config = ModelConfig(model="gpt-4.1-mini", **params)
    return ChatModel(config, client=config.create_client())


async def demo_max_tokens():
    print("=" * 60)
    print("MAX TOKENS DEMO")
    print("=" * 60)

    prompt = "Explain how computers work."
    print(f'\nPrompt: "{prompt}"\n')

    for limit in (50, 200):
        response = await openai_model(temperature=0, max_tokens=limit).ainvoke(prompt)
        print(f"max_tokens: {limit}")
        print(f"  Response: {response.content}")
        print(f"  Output tokens: {response.usage.output_tokens if response.usage else 'N/A'}")
        print(f"  Finish reason: {response.response_metadata.get('finish_reason')}\n")


async def compare_temperatures():
    print("=" * 60)
    print("TEMPERATURE COMPARISON")
    print("=" * 60)

    prompt = "Give me a creative name for a coffee shop."
    print(f'\nPrompt: "{prompt}"\n')

    for temperature, label in ((0, "deterministic"), (1, "creative")):
        model = openai_model(temperature=temperature)
        print(f"Temperature {temperature} ({label}):")
        for run in range(1, 4):
            response = await model.ainvoke(prompt)
            print(f"  Run {run}: {response.content}")
        print()


async def compare_providers():
    print("=" * 60)
    print("PROVIDER COMPARISON")
    print("=" * 60)

    prompt = "What is Python in exactly 10 words?"
    print(f'\nPrompt: "{prompt}"\n')

    providers = available_providers()
    if not providers:
        print("No API keys found! Add at least one to your .env file.")
        return

    for provider in providers:
        config = ModelConfig(provider=provider, model=PROVIDER_MODELS[provider], max_tokens=1024)
        model = ChatModel(config, client=config.create_client())
        print(f"{config}:")
        try:
            response = await model.ainvoke(prompt)
        except StepwiseError as e:
            print(f"  Error: {e}\n")
            continue
        print(f"  Response: {response.content}")
        print(f"  Tokens: {response.usage.output_tokens if response.usage else 'N/A'}\n")


async def main():
    print("\nModel Configuration Examples\n")
    await demo_max_tokens()
    await compare_temperatures()
    await compare_providers()
    print("=" * 60)
    print("Done! Try adding different API keys to compare providers.")
    print("=" * 60)


if __name__ == "__main__":
    asyncio.run(main())
