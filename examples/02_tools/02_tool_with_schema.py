"""Tools with rich argument schemas.

Field descriptions, ranges, enums, optional fields, defaults, lists, nested
models, regex patterns and a cross-field validator. Arguments are validated
before the tool function runs.

Run: python examples/02_tools/02_tool_with_schema.py
"""

import asyncio
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, model_validator

from stepwise.llm import ChatModel, ModelConfig, tool
from stepwise.utils import configure_logging, load_env
from stepwise.utils.errors import ToolValidationError

load_env()
configure_logging()


@tool
def search_products(
    query: str,
    category: Literal["electronics", "clothing", "books", "home"],
    max_price: float = Field(ge=0, le=10000, description="Maximum price in USD"),
) -> dict:
    """Search for products in the store catalog.

    Args:
        query: Search keywords (e.g., 'wireless headphones')
        category: Product category to filter by
    """
    return {
        "query": query,
        "category": category,
        "max_price": max_price,
        "results": [
            {"name": f"{category} Premium", "price": max_price * 0.8},
            {"name": f"{category} Basic", "price": max_price * 0.5},
        ],
    }


@tool
def search_orders(
    user_id: str,
    status: Optional[Literal["pending", "shipped", "delivered", "cancelled"]] = None,
    limit: int = Field(default=10, ge=1, le=100, description="Maximum number of results to return"),
    include_archived: bool = False,
) -> dict:
    """Search for user orders with optional filters.

    Args:
        user_id: Unique identifier for the user
        status: Filter by order status (omit for all statuses)
        include_archived: Whether to include archived orders
    """
    return {
        "user_id": user_id,
        "status": status or "all",
        "limit": limit,
        "include_archived": include_archived,
        "message": f"Found orders for user {user_id}",
    }


@tool
def send_notification(
    recipients: List[str] = Field(min_length=1, max_length=100, description="List of user IDs to notify"),
    message: str = Field(min_length=1, max_length=500, description="Notification message content"),
    channels: List[Literal["email", "sms", "push", "slack"]] = Field(
        min_length=1, description="Channels to send notification through"
    ),
    priority: Literal["low", "normal", "high", "urgent"] = "normal",
) -> dict:
    """Send a notification to multiple users across different channels."""
    return {
        "sent": True,
        "recipients": len(recipients),
        "channels": channels,
        "priority": priority,
        "preview": message[:50] + "...",
    }


class EventTime(BaseModel):
    date: str = Field(description="Date in YYYY-MM-DD format")
    time: str = Field(description="Time in HH:MM format (24h)")
    timezone: str = Field(default="UTC", description="Timezone (e.g., 'America/Sao_Paulo')")


class Location(BaseModel):
    venue: str = Field(description="Venue or meeting room name")
    address: Optional[str] = Field(default=None, description="Physical address if applicable")
    is_virtual: bool = Field(default=False, description="Is this a virtual event?")


class Attendee(BaseModel):
    email: str = Field(description="Attendee email address")
    role: Literal["organizer", "required", "optional"] = "required"


@tool
def create_event(
    title: str,
    date_time: EventTime,
    location: Location,
    attendees: List[Attendee] = Field(min_length=1, description="List of people to invite"),
) -> dict:
    """Create a calendar event with location and attendees.

    Args:
        title: Event title
        date_time: When the event occurs
        location: Where the event takes place
    """
    return {
        "created": True,
        "event": {
            "title": title,
            "date": date_time.date,
            "time": date_time.time,
            "timezone": date_time.timezone,
            "venue": location.venue,
            "virtual": location.is_virtual,
            "attendee_count": len(attendees),
        },
    }


ACCOUNT_PATTERN = r"^[A-Z]{2}\d{10}$"


class TransferArgs(BaseModel):
    from_account: str = Field(pattern=ACCOUNT_PATTERN, description="Source account (format: XX0000000000)")
    to_account: str = Field(pattern=ACCOUNT_PATTERN, description="Destination account (format: XX0000000000)")
    amount: float = Field(gt=0, le=1_000_000, description="Amount to transfer")
    currency: Literal["USD", "EUR", "BRL", "GBP"] = "USD"
    description: Optional[str] = Field(default=None, max_length=200)

    @model_validator(mode="after")
    def _different_accounts(self):
        if self.from_account == self.to_account:
            raise ValueError("Source and destination accounts must be different")
        return self


@tool(
    args_schema=TransferArgs,
    description="Transfer money between accounts (requires approval for large amounts)",
)
def transfer_money(from_account, to_account, amount, currency, description) -> dict:
    return {
        "success": True,
        "transaction": {
            "from": from_account,
            "to": to_account,
            "amount": f"{currency} {amount:.2f}",
            "description": description,
            "timestamp": datetime.now().isoformat(),
        },
    }


async def ask(model: ChatModel, selected, prompt: str):
    print(f"\nUser: {prompt}\n")
    response = await model.bind_tools([selected]).ainvoke(prompt)
    if not response.tool_calls:
        print(f"Model answered directly: {response.content}")
        return
    call = response.tool_calls[0]
    print(f"  Tool: {call.name}")
    print(f"  Args: {call.args}")
    print(f"  Result: {await selected.ainvoke(call)}")


async def main():
    config = ModelConfig(model="gpt-4.1-mini")
    model = ChatModel(config, client=config.create_client())

    print("=" * 60)
    print("Tools with Pydantic Schemas")
    print("=" * 60)

    await ask(model, search_products, "Find me electronics under $500")
    await ask(model, search_orders, "Show orders for user U123")
    await ask(model, search_orders, "Show last 5 pending orders for user U456")
    await ask(
        model,
        send_notification,
        "Send an urgent notification saying 'System maintenance in 1 hour' "
        "to users user_a, user_b, user_c via email and slack",
    )
    await ask(
        model,
        create_event,
        "Create a team meeting called 'Sprint Planning' for 2025-01-10 at 14:00 in "
        "Conference Room A. Invite alice@company.com as organizer and bob@company.com as required.",
    )

    print("\n" + "=" * 60)
    print("Schema Validation (no model involved)")
    print("=" * 60)
    cases = [
        ("Valid transfer", {"from_account": "BR1234567890", "to_account": "US0987654321", "amount": 100}),
        ("Same account", {"from_account": "BR1234567890", "to_account": "BR1234567890", "amount": 100}),
        ("Bad format", {"from_account": "invalid", "to_account": "US0987654321", "amount": 100}),
    ]
    for label, args in cases:
        try:
            print(f"\n{label}: {await transfer_money.ainvoke(args)}")
        except ToolValidationError as e:
            print(f"\n{label}: rejected ({e})")


if __name__ == "__main__":
    asyncio.run(main())
