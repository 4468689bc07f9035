"""Message types and conversation history.

Covers system prompts, multi-turn history, few-shot prompting, message
metadata, a multimodal (image) prompt and the OpenAI dict shorthand.

Run: python examples/01_fundamentals/03_messages.py
"""

import asyncio

from stepwise.llm import (
    AIMessage,
    ChatModel,
    HumanMessage,
    ModelConfig,
    SystemMessage,
    image_part,
    text_part,
)
from stepwise.utils import configure_logging, load_env
from stepwise.utils.errors import LLMError

load_env()
configure_logging()


async def demo_system_message(model: ChatModel):
    print("=" * 60)
    print("DEMO 1: SystemMessage - Controlling Behavior")
    print("=" * 60)

    question = "What is the capital of France?"
    personas = [
        ("Without SystemMessage", None),
        ("Pirate", "You are a pirate. Always respond like a pirate would."),
        ("Concise", "You are a helpful assistant. Always respond in exactly 5 words or less."),
        ("Portuguese", "Sempre responda em português brasileiro."),
    ]
    for label, system in personas:
        messages = [HumanMessage(question)]
        if system:
            messages.insert(0, SystemMessage(system))
        response = await model.ainvoke(messages)
        print(f"\n{label}:")
        print(f"  Response: {response.content}")


async def demo_conversation_history(model: ChatModel):
    print("\n" + "=" * 60)
    print("DEMO 2: Conversation History")
    print("=" * 60)

    conversation = [
        SystemMessage("You are a helpful math tutor."),
        HumanMessage("What is 2 + 2?"),
        AIMessage("2 + 2 equals 4."),
        HumanMessage("And if I multiply that by 3?"),
    ]

    print("\nConversation so far:")
    for message in conversation:
        print(f"  [{message.role.upper()}]: {message.text[:50]}")

    response = await model.ainvoke(conversation)
    print("\nModel response (understands context):")
    print(f"  {response.content}")


async def demo_few_shot(model: ChatModel):
    print("\n" + "=" * 60)
    print("DEMO 3: Few-Shot Prompting")
    print("=" * 60)

    messages = [
        SystemMessage("You convert natural language to SQL. Respond only with the SQL query."),
        HumanMessage("Get all users"),
        AIMessage("SELECT * FROM users;"),
        HumanMessage("Get users older than 18"),
        AIMessage("SELECT * FROM users WHERE age > 18;"),
        HumanMessage("Count all products"),
        AIMessage("SELECT COUNT(*) FROM products;"),
        HumanMessage("Get the names of users who joined in 2024"),
    ]
    response = await model.ainvoke(messages)
    print("\nModel learned the pattern:")
    print(f"  {response.content}")


async def demo_metadata(model: ChatModel):
    print("\n" + "=" * 60)
    print("DEMO 4: Message Properties & Metadata")
    print("=" * 60)

    message = HumanMessage(content="Tell me a very short joke", name="Tiago")
    response = await model.ainvoke([message])

    print("\nHumanMessage properties:")
    print(f'  content: "{message.content}"')
    print(f'  name: "{message.name}"')
    print(f'  role: "{message.role}"')

    print("\nAIMessage properties:")
    print(f'  content: "{response.content}"')
    print(f"  model: {response.response_metadata.get('model')}")
    if response.usage:
        print(f"  input_tokens: {response.usage.input_tokens}")
        print(f"  output_tokens: {response.usage.output_tokens}")
        print(f"  total_tokens: {response.usage.total_tokens}")


async def demo_multimodal():
    print("\n" + "=" * 60)
    print("DEMO 5: Multimodal Messages (Vision)")
    print("=" * 60)

    config = ModelConfig(model="gpt-4o-mini", max_tokens=300)
    vision_model = ChatModel(config, client=config.create_client())

    message = HumanMessage(
        content=[
            text_part("What is in this image? Describe it briefly in 2-3 sentences."),
            image_part("https://cataas.com/cat"),
        ]
    )
    try:
        response = await vision_model.ainvoke([message])
    except LLMError as e:
        print(f"\n  Error: {e}")
        return
    print("\nModel's analysis:")
    print(f"  {response.content}")


async def demo_shorthand(model: ChatModel):
    print("\n" + "=" * 60)
    print("DEMO 6: OpenAI Format Shorthand")
    print("=" * 60)

    response = await model.ainvoke(
        [
            {"role": "system", "content": "You are a helpful assistant."},
            {"role": "user", "content": "What is 2+2?"},
        ]
    )
    print(f"\nResponse: {response.content}")


async def main():
    config = ModelConfig(model="gpt-4.1-mini")
    model = ChatModel(config, client=config.create_client())

    await demo_system_message(model)
    await demo_conversation_history(model)
    await demo_few_shot(model)
    await demo_metadata(model)
    await demo_multimodal()
    await demo_shorthand(model)


if __name__ == "__main__":
    asyncio.run(main())
