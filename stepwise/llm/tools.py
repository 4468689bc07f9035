"""Tools the model can call.

A Tool pairs a Python function (sync or async) with a pydantic model that
describes and validates its arguments. Tools can be declared with the
``@tool`` decorator, built from a function at runtime, or assembled from a
field mapping when the argument shape is only known at runtime.

Example:
    >>> @tool
    ... def get_weather(city: Annotated[str, Field(description="City name")]) -> str:
    ...     '''Get the current weather for a city.'''
    ...     return f"Sunny in {city}"
    >>>
    >>> get_weather.openai_schema()["function"]["name"]
    'get_weather'
"""

from typing import (
    Any,
    Callable,
    Dict,
    Iterable,
    List,
    Mapping,
    Optional,
    Type,
    Union,
    get_type_hints,
)
import asyncio
import functools
import inspect
import json
import logging
import re

from pydantic import BaseModel, Field, ValidationError, create_model
from pydantic.fields import FieldInfo

from stepwise.llm.messages import ToolCall, ToolMessage
from stepwise.utils.errors import ToolValidationError, UnknownToolError

logger = logging.getLogger(__name__)

_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9_-]{1,64}$")


class Tool:
    """A callable tool with a validated argument schema.

    Attributes:
        name: Name the model uses to call the tool
        description: What the tool does, shown to the model
        args_schema: Pydantic model for the arguments
        func: The function to run, called with keyword arguments
    """

    def __init__(
        self,
        name: str,
        description: str,
        args_schema: Type[BaseModel],
        func: Callable[..., Any],
    ):
        if not _NAME_PATTERN.match(name):
            raise ValueError(
                f"Invalid tool name '{name}': use letters, digits, '_' or '-' (max 64)"
            )
        self.name = name
        self.description = description
        self.args_schema = args_schema
        self.func = func
        self.is_async = inspect.iscoroutinefunction(func)

    @classmethod
    def from_function(
        cls,
        fn: Callable[..., Any],
        name: Optional[str] = None,
        description: Optional[str] = None,
        args_schema: Optional[Type[BaseModel]] = None,
    ) -> "Tool":
        """Build a tool from a function's signature and docstring.

        Args:
            fn: Sync or async function
            name: Tool name (defaults to ``fn.__name__``)
            description: Defaults to the docstring's first paragraph
            args_schema: Explicit argument model; inferred from the
                signature when omitted
        """
        name = name or fn.__name__
        doc = inspect.getdoc(fn) or ""
        return cls(
            name=name,
            description=description or _summary(doc) or name,
            args_schema=args_schema or _schema_from_signature(fn, name, doc),
            func=fn,
        )

    def parameters_schema(self) -> Dict[str, Any]:
        """JSON Schema of the arguments, as sent to the model."""
        schema = self.args_schema.model_json_schema()
        schema.pop("title", None)
        schema.setdefault("type", "object")
        schema.setdefault("properties", {})
        return schema

    def openai_schema(self) -> Dict[str, Any]:
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters_schema(),
            },
        }

    def validate_args(self, args: Union[Mapping[str, Any], ToolCall, None]) -> BaseModel:
        """Validate arguments against the schema.

        Raises:
            ToolValidationError: If validation fails
        """
        if isinstance(args, ToolCall):
            args = args.args
        try:
            return self.args_schema.model_validate(dict(args or {}))
        except ValidationError as e:
            raise ToolValidationError(self.name, _format_validation_error(e)) from e

    async def ainvoke(self, args: Union[Mapping[str, Any], ToolCall, None] = None) -> Any:
        """Validate arguments and run the tool.

        Sync functions run in the default executor so they do not block the
        event loop.

        Raises:
            ToolValidationError: If the arguments do not validate
        """
        kwargs = self._kwargs(self.validate_args(args))
        if self.is_async:
            return await self.func(**kwargs)

        loop = asyncio.get_running_loop()
        result = await loop.run_in_executor(None, functools.partial(self.func, **kwargs))
        if inspect.isawaitable(result):
            result = await result
        return result

    def invoke(self, args: Union[Mapping[str, Any], ToolCall, None] = None) -> Any:
        """Run a sync tool directly, without an event loop."""
        if self.is_async:
            raise TypeError(f"Tool '{self.name}' is async; use ainvoke()")
        return self.func(**self._kwargs(self.validate_args(args)))

    async def run(self, call: ToolCall) -> ToolMessage:
        """Run a model-requested call and wrap the result for the model."""
        result = await self.ainvoke(call)
        return ToolMessage(
            content=format_tool_result(result),
            name=self.name,
            tool_call_id=call.id,
        )

    def _kwargs(self, validated: BaseModel) -> Dict[str, Any]:
        # Attribute access keeps nested models as instances
        return {field_name: getattr(validated, field_name) for field_name in type(validated).model_fields}

    def __repr__(self) -> str:
        return f"Tool(name='{self.name}')"


def tool(
    _fn: Optional[Callable[..., Any]] = None,
    *,
    name: Optional[str] = None,
    description: Optional[str] = None,
    args_schema: Optional[Type[BaseModel]] = None,
) -> Any:
    """Decorator turning a function into a Tool.

    Use bare (``@tool``) or with options
    (``@tool(name="search", description="...")``). Parameter descriptions
    come from ``Annotated[..., Field(description=...)]`` or from the
    docstring's ``Args:`` section.
    """

    def wrapper(fn: Callable[..., Any]) -> Tool:
        return Tool.from_function(fn, name=name, description=description, args_schema=args_schema)

    if _fn is None:
        return wrapper
    return wrapper(_fn)


def tool_from_fields(
    name: str,
    description: str,
    fields: Mapping[str, Any],
    func: Callable[..., Any],
) -> Tool:
    """Build a tool whose arguments are decided at runtime.

    Args:
        name: Tool name
        description: Tool description
        fields: Maps argument name to a type (required) or to a
            ``(type, default_or_Field)`` pair, as for ``pydantic.create_model``
        func: Called with the validated arguments as keywords

    Example:
        >>> lookup = tool_from_fields(
        ...     "get_product",
        ...     "Get a product by id",
        ...     {"product_id": (str, Field(description="Product id"))},
        ...     fetch_product,
        ... )
    """
    definitions = {
        field_name: spec if isinstance(spec, tuple) else (spec, ...)
        for field_name, spec in fields.items()
    }
    args_schema = create_model(_model_name(name), **definitions)
    return Tool(name=name, description=description, args_schema=args_schema, func=func)


def string_tool(
    name: str,
    description: str,
    func: Callable[[str], Any],
    input_description: str = "The input string",
) -> Tool:
    """Build a tool taking a single ``input`` string."""
    if inspect.iscoroutinefunction(func):

        async def call(input: str) -> Any:
            return await func(input)

    else:

        def call(input: str) -> Any:
            return func(input)

    return tool_from_fields(
        name,
        description,
        {"input": (str, Field(description=input_description))},
        call,
    )


def tools_by_name(tools: Union[Iterable[Tool], Mapping[str, Tool]]) -> Dict[str, Tool]:
    """Index tools by name.

    Raises:
        ValueError: On duplicate names
    """
    if isinstance(tools, Mapping):
        return dict(tools)
    index: Dict[str, Tool] = {}
    for item in tools:
        if not isinstance(item, Tool):
            item = Tool.from_function(item)
        if item.name in index:
            raise ValueError(f"Duplicate tool name: {item.name}")
        index[item.name] = item
    return index


async def execute_tool_calls(
    tool_calls: Iterable[ToolCall],
    tools: Union[Iterable[Tool], Mapping[str, Tool]],
    handle_errors: bool = True,
) -> List[ToolMessage]:
    """Run tool calls in order and collect one ToolMessage per call.

    Args:
        tool_calls: Calls requested by the model
        tools: Available tools
        handle_errors: Report failures back to the model as error
            ToolMessages instead of raising

    Raises:
        UnknownToolError: Unknown tool name and ``handle_errors`` is False
        ToolValidationError: Bad arguments and ``handle_errors`` is False
    """
    index = tools_by_name(tools)
    results: List[ToolMessage] = []

    for call in tool_calls:
        selected = index.get(call.name)
        if selected is None:
            if not handle_errors:
                raise UnknownToolError(call.name)
            logger.warning("Model requested unknown tool %s", call.name)
            results.append(_error_message(call, f"Unknown tool: {call.name}"))
            continue

        logger.debug("Calling tool %s with %s", call.name, call.args)
        try:
            results.append(await selected.run(call))
        except ToolValidationError as e:
            if not handle_errors:
                raise
            logger.warning("%s", e)
            results.append(_error_message(call, str(e)))
        except Exception as e:
            if not handle_errors:
                raise
            logger.warning("Tool %s failed: %s", call.name, e)
            results.append(_error_message(call, f"Error: {e}"))

    return results


def format_tool_result(result: Any) -> str:
    """Render a tool's return value as message text."""
    if isinstance(result, str):
        return result
    if isinstance(result, BaseModel):
        return result.model_dump_json()
    if isinstance(result, (dict, list, tuple)):
        return json.dumps(result, default=str)
    return str(result)


def _error_message(call: ToolCall, content: str) -> ToolMessage:
    return ToolMessage(content=content, name=call.name, tool_call_id=call.id, status="error")


def _format_validation_error(error: ValidationError) -> str:
    problems = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"]) or "arguments"
        problems.append(f"{location}: {item['msg']}")
    return "; ".join(problems)


def _model_name(tool_name: str) -> str:
    return "".join(part.capitalize() for part in re.split(r"[_-]", tool_name)) + "Args"


def _summary(doc: str) -> str:
    """First paragraph of a docstring."""
    lines = []
    for line in doc.splitlines():
        stripped = line.strip()
        if not stripped or stripped.endswith(":"):
            break
        lines.append(stripped)
    return " ".join(lines)


def _parse_docstring_args(doc: str) -> Dict[str, str]:
    """Parameter descriptions from a Google-style ``Args:`` section."""
    descriptions: Dict[str, str] = {}
    in_args = False
    current = None

    for line in doc.splitlines():
        stripped = line.strip()
        if stripped in ("Args:", "Arguments:", "Parameters:"):
            in_args = True
            continue
        if in_args and stripped.endswith(":") and not line.startswith(" "):
            break
        if not in_args or not stripped:
            continue

        if ":" in stripped:
            param, desc = stripped.split(":", 1)
            param = param.split("(")[0].strip()
            if param.isidentifier():
                current = param
                descriptions[param] = desc.strip()
                continue
        if current:
            descriptions[current] += " " + stripped

    return descriptions


def _has_description(annotation: Any) -> bool:
    for meta in getattr(annotation, "__metadata__", ()):
        if getattr(meta, "description", None):
            return True
    return False


def _schema_from_signature(fn: Callable[..., Any], name: str, doc: str) -> Type[BaseModel]:
    hints = get_type_hints(fn, include_extras=True)
    descriptions = _parse_docstring_args(doc)
    definitions: Dict[str, Any] = {}

    for param_name, param in inspect.signature(fn).parameters.items():
        if param_name in ("self", "cls"):
            continue
        if param.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
            continue

        annotation = hints.get(param_name, Any)
        default = ... if param.default is inspect.Parameter.empty else param.default
        description = descriptions.get(param_name)

        if description and not _has_description(annotation) and not isinstance(default, FieldInfo):
            definitions[param_name] = (annotation, Field(default, description=description))
        else:
            definitions[param_name] = (annotation, default)

    return create_model(_model_name(name), **definitions)
