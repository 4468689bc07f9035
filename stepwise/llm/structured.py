"""Structured output through a forced function call.

The schema is offered to the model as the only tool and the model is
required to call it. The call's arguments are then validated with pydantic.
"""

from dataclasses import dataclass
from typing import Any, Generic, Optional, Type, TypeVar, TYPE_CHECKING
import logging

from pydantic import BaseModel, ValidationError

from stepwise.llm.messages import AIMessage
from stepwise.llm.tools import Tool
from stepwise.utils.errors import StructuredOutputError

if TYPE_CHECKING:
    from stepwise.llm.chat import ChatModel

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)


@dataclass
class StructuredResult(Generic[T]):
    """Parsed object together with the assistant message it came from."""

    parsed: T
    raw: AIMessage


def _echo(**kwargs: Any) -> Any:
    return kwargs


class StructuredModel(Generic[T]):
    """Chat model wrapper returning validated pydantic objects.

    Example:
        >>> class City(BaseModel):
        ...     name: str
        ...     country: str
        ...     population: int
        >>>
        >>> city = await model.with_structured_output(City).ainvoke("Tell me about Paris")
        >>> city.country
        'France'
    """

    def __init__(self, model: "ChatModel", schema: Type[T], include_raw: bool = False):
        """Initialize structured model.

        Args:
            model: Chat model to call
            schema: Pydantic model the reply must validate against
            include_raw: Return StructuredResult instead of the bare object
        """
        self.schema = schema
        self.include_raw = include_raw
        self.tool = Tool(
            name=schema.__name__,
            description=(schema.__doc__ or "").strip() or f"Respond with a {schema.__name__}",
            args_schema=schema,
            func=_echo,
        )
        self.model = model.bind_tools([self.tool], tool_choice=self.tool.name)

    async def ainvoke(self, messages: Any, **kwargs: Any) -> Any:
        """Call the model and validate its reply.

        Returns:
            A ``schema`` instance, or StructuredResult when include_raw is set

        Raises:
            StructuredOutputError: If the model does not call the schema
                function or its arguments fail validation
            LLMError: If the request fails
        """
        raw = await self.model.ainvoke(messages, **kwargs)
        call = next((tc for tc in raw.tool_calls if tc.name == self.tool.name), None)
        if call is None:
            raise StructuredOutputError(
                f"Model did not return a {self.schema.__name__}", raw=raw
            )

        try:
            if call.raw_arguments is not None:
                parsed = self.schema.model_validate_json(call.raw_arguments)
            else:
                parsed = self.schema.model_validate(call.args)
        except ValidationError as e:
            logger.warning("Structured output failed validation: %s", e)
            raise StructuredOutputError(
                f"Response does not match {self.schema.__name__}: {e.error_count()} validation error(s)",
                raw=raw,
                original_error=e,
            ) from e

        if self.include_raw:
            return StructuredResult(parsed=parsed, raw=raw)
        return parsed

    def __repr__(self) -> str:
        return f"StructuredModel({self.schema.__name__})"
