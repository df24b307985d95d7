"""
Built-in command handlers.

Each handler takes `(host, params)` and returns a HandlerResult from a single
return path. Anything it raises is turned into a failure response by the
dispatch loop, so handlers only catch what they can describe better.
"""
import base64
from typing import Any

from spanreed.bridge.host import Host
from spanreed.bridge.registry import HandlerRegistry, HandlerResult
from spanreed.bridge.vault import DAILY_NOTES_COMMAND
from spanreed.protocol.errors import CapabilityUnavailableError, HandlerFault
from spanreed.utils.json_handlers import is_jsonable

registry = HandlerRegistry()


def default_registry() -> HandlerRegistry:
    """The registry holding every built-in method."""
    return registry


def _require(params: Any, key: str) -> Any:
    if not isinstance(params, dict):
        raise HandlerFault(f"params must be an object, got {type(params).__name__}")
    if key not in params:
        raise HandlerFault(f"missing param: {key}")
    return params[key]


# ==== DAILY NOTES ====

@registry.method("generate-daily-note")
async def generate_daily_note(host: Host, params: Any) -> HandlerResult:
    await host.execute_command(DAILY_NOTES_COMMAND)
    return HandlerResult.ok(None)


# ==== PROPERTIES ====

class _NotAList(Exception):
    pass


def _same(a: Any, b: Any) -> bool:
    # 1 == True in Python, but not in the controller's JSON
    return isinstance(a, bool) == isinstance(b, bool) and a == b


def _add_to_list(property_name: str, value: Any):
    def apply(front_matter: dict) -> None:
        current = front_matter.get(property_name, [])
        if not isinstance(current, list):
            raise _NotAList()
        if not any(_same(item, value) for item in current):
            current.append(value)
        front_matter[property_name] = current
    return apply


def _remove_from_list(property_name: str, value: Any):
    def apply(front_matter: dict) -> None:
        if property_name not in front_matter:
            return
        current = front_matter[property_name]
        if not isinstance(current, list):
            raise _NotAList()
        for index, item in enumerate(current):
            if _same(item, value):
                del current[index]
                break
    return apply


def _set_single_value(property_name: str, value: Any):
    def apply(front_matter: dict) -> None:
        front_matter[property_name] = value
    return apply


def _delete_property(property_name: str, value: Any):
    def apply(front_matter: dict) -> None:
        front_matter.pop(property_name, None)
    return apply


def _get_property(property_name: str, value: Any):
    def apply(front_matter: dict) -> Any:
        return front_matter.get(property_name)
    return apply


PROPERTY_OPERATIONS = {
    "addToList": _add_to_list,
    "removeFromList": _remove_from_list,
    "setSingleValue": _set_single_value,
    "deleteProperty": _delete_property,
    "getProperty": _get_property,
}


@registry.method("modify-property")
async def modify_property(host: Host, params: Any) -> HandlerResult:
    filepath = _require(params, "filepath")
    property_name = _require(params, "property")
    operation = _require(params, "operation")
    value = params.get("value")

    if not await host.exists(filepath):
        return HandlerResult.fail("file not found")

    build = PROPERTY_OPERATIONS.get(operation)
    if build is None:
        return HandlerResult.fail(f"unknown operation {operation}")

    try:
        outcome = await host.process_front_matter(filepath, build(property_name, value))
    except _NotAList:
        return HandlerResult.fail("property is not a list")

    if not is_jsonable(outcome):
        return HandlerResult.fail("property value cannot be encoded")

    # Only getProperty produces a value; absent maps to null
    return HandlerResult.ok(outcome)


# ==== QUERIES ====

@registry.method("query-dataview")
async def query_dataview(host: Host, params: Any) -> HandlerResult:
    query = _require(params, "query")
    if host.query_engine is None:
        raise CapabilityUnavailableError("dataview plugin is not available")
    result = await host.query_engine.try_query(query)
    return HandlerResult.ok(result)


# ==== FILES ====

@registry.method("read-file")
async def read_file(host: Host, params: Any) -> HandlerResult:
    filepath = _require(params, "filepath")
    fmt = params.get("format", "text")

    if fmt not in ("text", "binary"):
        return HandlerResult.fail(f"unknown format {fmt}")
    if not await host.exists(filepath):
        return HandlerResult.fail(f"File {filepath} doesn't exist")

    if fmt == "binary":
        raw = await host.read_bytes(filepath)
        return HandlerResult.ok({"content": base64.b64encode(raw).decode("ascii"), "encoding": "base64"})
    return HandlerResult.ok({"content": await host.read_text(filepath), "encoding": "utf-8"})


@registry.method("list-dir")
async def list_dir(host: Host, params: Any) -> HandlerResult:
    prefix = _require(params, "path")
    # Plain string prefix: "Foo" also matches "FooBar.md"
    return HandlerResult.ok([path for path in await host.list_files() if path.startswith(prefix)])


@registry.method("move-file")
async def move_file(host: Host, params: Any) -> HandlerResult:
    source = _require(params, "from")
    destination = _require(params, "to")
    if not await host.exists(source):
        return HandlerResult.fail(f"File {source} doesn't exist")
    await host.rename(source, destination)
    return HandlerResult.ok(None)
