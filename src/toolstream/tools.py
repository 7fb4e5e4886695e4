import inspect
import json
import logging
import re
from typing import Any, Callable

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

_TOOL_NAME_RE = re.compile(r"^[a-zA-Z0-9_-]{1,64}$")

_JSON_TYPES = {
    str: "string",
    int: "integer",
    float: "number",
    bool: "boolean",
    dict: "object",
    list: "array",
    tuple: "array",
    set: "array",
}


class ToolRegistrationError(ValueError):
    """Raised when a tool cannot be added to a :class:`ToolRegistry`."""


class ToolCallResult(BaseModel):
    tool_name: str
    output: str


def _json_type(annotation: Any) -> str:
    origin = getattr(annotation, "__origin__", None)
    return _JSON_TYPES.get(origin or annotation, "string")


def _parse_param_descriptions(func: Callable) -> dict[str, str]:
    """Pull per-parameter descriptions out of a Google or reST docstring."""
    doc = inspect.getdoc(func) or ""
    descriptions: dict[str, str] = {}

    for match in re.finditer(r"^:param\s+(\w+):\s*(.+)$", doc, re.MULTILINE):
        descriptions[match.group(1)] = match.group(2).strip()
    if descriptions:
        return descriptions

    in_args = False
    for line in doc.splitlines():
        stripped = line.strip()
        if stripped in ("Args:", "Arguments:"):
            in_args = True
            continue
        if not in_args:
            continue
        if not stripped or (not line.startswith(" ") and stripped.endswith(":")):
            break
        match = re.match(r"^(\w+)(?:\s*\([^)]*\))?:\s*(.+)$", stripped)
        if match:
            descriptions[match.group(1)] = match.group(2).strip()
    return descriptions


def _build_parameters_schema(func: Callable) -> tuple[dict, list[str]]:
    """Return the JSON schema ``parameters`` object and required names."""
    signature = inspect.signature(func)
    descriptions = _parse_param_descriptions(func)
    properties: dict[str, dict[str, str]] = {}
    required: list[str] = []

    for param_name, param in signature.parameters.items():
        if param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
            continue
        prop = {"type": _json_type(param.annotation)}
        if param_name in descriptions:
            prop["description"] = descriptions[param_name]
        properties[param_name] = prop
        if param.default is inspect.Parameter.empty:
            required.append(param_name)

    schema = {
        "type": "object",
        "properties": properties,
        "required": required,
    }
    return schema, required


def _summary(func: Callable) -> str:
    doc = inspect.getdoc(func) or ""
    summary = []
    for line in doc.splitlines():
        if not line.strip() or line.strip() in ("Args:", "Arguments:"):
            break
        if line.strip().startswith(":param"):
            break
        summary.append(line.strip())
    return " ".join(summary)


class Tool(BaseModel):
    """A callable the model may invoke, plus its function schema.

    Both plain and ``async`` functions are supported. Return values
    that are not strings are JSON-encoded before being handed back to
    the model.
    """

    func: Callable = Field(exclude=True)
    name: str = Field(exclude=True)
    description: str = Field(default="", exclude=True)
    model_config = {"arbitrary_types_allowed": True}

    def __init__(self, func: Callable, name: str | None = None,
                 description: str | None = None):
        super().__init__(
            func=func,
            name=name or func.__name__,
            description=description if description is not None else _summary(func),
        )

    def model_dump(self, **kwargs):
        """Override to return the JSON schema instead of internal attributes"""
        return self.get_schema()

    def model_dump_json(self, **kwargs):
        return json.dumps(self.get_schema())

    def get_schema(self) -> dict:
        parameters, _ = _build_parameters_schema(self.func)
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": parameters,
            }
        }

    async def __call__(self, **kwargs) -> ToolCallResult:
        output = self.func(**kwargs)
        if inspect.isawaitable(output):
            output = await output
        if not isinstance(output, str):
            output = json.dumps(output, default=str)
        return ToolCallResult(tool_name=self.name, output=output)


def tool(func: Callable | None = None, *, name: str | None = None,
         description: str | None = None):
    """Decorator turning a function into a :class:`Tool`.

    Usable bare (``@tool``) or with overrides
    (``@tool(name="lookup")``).
    """
    def wrap(f: Callable) -> Tool:
        return Tool(f, name=name, description=description)

    if func is not None:
        return wrap(func)
    return wrap


class ToolRegistry:
    """Name to :class:`Tool` table advertised to the model.

    Names are checked against what the completion API accepts and must
    be unique. Plain callables are wrapped in :class:`Tool` on the way
    in.
    """

    def __init__(self, tools: list[Tool | Callable] | None = None):
        self._tools: dict[str, Tool] = {}
        for t in tools or []:
            self.register(t)

    def register(self, t: Tool | Callable) -> Tool:
        if not isinstance(t, Tool):
            if not callable(t):
                raise ToolRegistrationError(f"{t!r} is not callable")
            t = Tool(t)
        if not _TOOL_NAME_RE.match(t.name):
            raise ToolRegistrationError(
                f"Invalid tool name {t.name!r}: must match {_TOOL_NAME_RE.pattern}"
            )
        if t.name in self._tools:
            raise ToolRegistrationError(f"Tool {t.name!r} is already registered")
        self._tools[t.name] = t
        logger.debug(f"Registered tool {t.name}")
        return t

    def get(self, name: str) -> Tool | None:
        return self._tools.get(name)

    def schemas(self) -> list[dict]:
        return [t.model_dump() for t in self._tools.values()]

    def __contains__(self, name: str) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def __iter__(self):
        return iter(self._tools.values())
