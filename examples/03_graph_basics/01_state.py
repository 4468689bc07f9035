"""State: named fields with merge rules.

An overwrite field keeps the last value written. An append field collects
every value in the order steps ran. No model or network needed.

Run: python examples/03_graph_basics/01_state.py
"""

from typing import Annotated, TypedDict

from stepwise import StateSchema, append
from stepwise.utils.errors import UndeclaredFieldError


class GraphState(TypedDict):
    name: str
    items: Annotated[list[str], append]


def main():
    schema = StateSchema.from_annotations(GraphState)
    print(f"Schema: {schema}")
    for spec in schema:
        print(f"  {spec.name}: {spec.kind.value}")

    state = schema.initial_state()
    print(f"\nInitial state: {state}")

    print("\nSimulating two steps by hand:")
    state = schema.apply(state, {"name": "Ada", "items": ["First"]})
    print(f"  after step 1: {state}")
    state = schema.apply(state, {"items": ["Second"]})
    print(f"  after step 2: {state}")
    state = schema.apply(state, {"name": "Ada Lovelace"})
    print(f"  after step 3: {state}")

    print("\nThe same schema, declared in code:")
    explicit = StateSchema().overwrite("name", str).append_field("items", list)
    print(f"  {explicit}")

    print("\nUpdating a field that was never declared:")
    try:
        schema.apply(state, {"nickname": "Ada"})
    except UndeclaredFieldError as e:
        print(f"  {e}")


if __name__ == "__main__":
    main()
