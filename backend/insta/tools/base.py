"""Building blocks shared by every tool: arguments, definitions, results."""

from __future__ import annotations

import types
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, ClassVar, Generic, TypeVar, Union, get_args, get_origin

from pydantic import BaseModel, ConfigDict, ValidationError

from insta.exceptions import ToolArgumentError
from shared.validators import format_validation_error

if TYPE_CHECKING:
    from insta.auth.manager import AuthSessionManager
    from insta.classifier import ErrorKind
    from insta.client.protocol import AccountClient

_JSON_TYPES: dict[type, str] = {str: "string", int: "number", float: "number", bool: "boolean"}


@dataclass(frozen=True)
class ToolParameter:
    name: str
    type: str
    description: str = ""
    required: bool = False
    default: Any = None


@dataclass(frozen=True)
class ToolDefinition:
    name: str
    description: str
    parameters: tuple[ToolParameter, ...] = ()

    def input_schema(self) -> dict[str, Any]:
        """Render the parameters as a JSON Schema object."""
        properties: dict[str, Any] = {}
        for param in self.parameters:
            prop: dict[str, Any] = {"type": param.type, "description": param.description}
            if param.default is not None:
                prop["default"] = param.default
            properties[param.name] = prop
        return {
            "type": "object",
            "properties": properties,
            "required": [param.name for param in self.parameters if param.required],
        }


@dataclass(frozen=True)
class ToolResult:
    """Envelope returned for every dispatched call, success or failure."""

    content: list[str] = field(default_factory=list)
    is_error: bool = False

    @classmethod
    def success(cls, *segments: str) -> ToolResult:
        return cls(content=list(segments))

    @classmethod
    def failure(cls, message: str) -> ToolResult:
        return cls(content=[f"Error: {message}"], is_error=True)

    @property
    def text(self) -> str:
        return "\n".join(self.content)


class ToolArguments(BaseModel):
    """Base model for tool arguments; camelCase aliases are the wire names."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)


class NoArguments(ToolArguments):
    pass


def _json_type(annotation: Any) -> str:  # noqa: ANN401
    if get_origin(annotation) in (Union, types.UnionType):
        annotation = next(arg for arg in get_args(annotation) if arg is not type(None))
    return _JSON_TYPES.get(annotation, "string")


def parameters_of(model: type[ToolArguments]) -> tuple[ToolParameter, ...]:
    params = []
    for name, info in model.model_fields.items():
        required = info.is_required()
        params.append(
            ToolParameter(
                name=info.alias or name,
                type=_json_type(info.annotation),
                description=info.description or "",
                required=required,
                default=None if required else info.default,
            ),
        )
    return tuple(params)


ArgsT = TypeVar("ArgsT", bound=ToolArguments)


class Tool(ABC, Generic[ArgsT]):
    """A named operation exposed to the RPC caller.

    Subclasses declare name, description and an arguments model, and
    implement execute(). Failures are left to propagate: the registry
    classifies and renders them. The hooks below let a tool phrase those
    failures for its own subject.
    """

    name: ClassVar[str]
    description: ClassVar[str]
    arguments_model: ClassVar[type[ToolArguments]] = NoArguments
    # Noun used in "not found" messages.
    subject: ClassVar[str] = "Resource"

    def __init__(self, auth: AuthSessionManager) -> None:
        self.auth = auth

    def definition(self) -> ToolDefinition:
        return ToolDefinition(name=self.name, description=self.description, parameters=parameters_of(self.arguments_model))

    def validate(self, arguments: dict[str, Any]) -> ArgsT:
        try:
            return self.arguments_model.model_validate(arguments)  # type: ignore[return-value]
        except ValidationError as exc:
            raise ToolArgumentError(format_validation_error(exc)) from exc

    @abstractmethod
    async def execute(self, args: ArgsT) -> ToolResult: ...

    async def client(self) -> AccountClient:
        return await self.auth.client()

    async def authenticated_client(self) -> AccountClient:
        """Client handle for operations that need a logged-in session."""
        await self.auth.initialize()
        return self.auth.require_authenticated()

    def error_target(self, arguments: dict[str, Any]) -> str | None:  # noqa: ARG002
        """Describe the rejected target, e.g. 'user ID "123"'."""
        return None

    def failure_message(self, kind: ErrorKind, error: Exception, arguments: dict[str, Any]) -> str | None:  # noqa: ARG002
        """Tool-specific wording for a failure, or None for the default."""
        return None

    def conflict_message(self, arguments: dict[str, Any]) -> str:  # noqa: ARG002
        return "The requested change is already in effect."
