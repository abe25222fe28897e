from typing import List, Optional

import pytest
from pydantic import BaseModel, Field

from syndicate.errors import ToolExecutionError
from syndicate.tools.function import FunctionTool
from syndicate.tools.schema import generate_schema, json_response_format


class Address(BaseModel):
    city: str


class Person(BaseModel):
    name: str = Field(description="Full name")
    age: int
    tags: List[str]
    address: Address
    nickname: Optional[str] = None


class SearchArgs(BaseModel):
    query: str
    limit: int = 3


def test_generate_schema_closes_every_object():
    schema = generate_schema(Person)

    assert schema["type"] == "object"
    assert schema["additionalProperties"] is False
    assert schema["properties"]["name"]["description"] == "Full name"
    assert schema["properties"]["tags"]["type"] == "array"
    assert set(schema["required"]) == {"name", "age", "tags", "address"}
    assert schema["$defs"]["Address"]["additionalProperties"] is False
    assert "title" not in schema


def test_json_response_format_wraps_schema():
    fmt = json_response_format("person", Person)

    assert fmt.type == "json_schema"
    assert fmt.json_schema.name == "person"
    assert fmt.json_schema.strict is True
    assert fmt.json_schema.schema["properties"]["age"]["type"] == "integer"


def test_function_tool_definition():
    tool = FunctionTool("search", "Search the index.", lambda args: [], SearchArgs)

    definition = tool.definition()
    assert definition.name == "search"
    assert definition.description == "Search the index."
    assert definition.parameters["properties"]["query"]["type"] == "string"


@pytest.mark.asyncio
async def test_function_tool_runs_sync_function():
    tool = FunctionTool(
        "search",
        "Search the index.",
        lambda args: [args.query] * args.limit,
        SearchArgs,
    )
    assert await tool.execute('{"query": "q", "limit": 2}') == ["q", "q"]


@pytest.mark.asyncio
async def test_function_tool_awaits_coroutine_function():
    async def search(args):
        return {"query": args.query, "limit": args.limit}

    tool = FunctionTool("search", "Search the index.", search, SearchArgs)
    assert await tool.execute('{"query": "q"}') == {"query": "q", "limit": 3}


@pytest.mark.asyncio
async def test_function_tool_rejects_invalid_arguments():
    tool = FunctionTool("search", "Search the index.", lambda args: [], SearchArgs)

    with pytest.raises(ToolExecutionError) as excinfo:
        await tool.execute('{"limit": "many"}')
    assert excinfo.value.tool_name == "search"


@pytest.mark.asyncio
async def test_function_tool_awaits_async_callable_object():
    class Searcher:
        async def __call__(self, args):
            return [args.query]

    tool = FunctionTool("search", "Search the index.", Searcher(), SearchArgs)
    assert await tool.execute('{"query": "q"}') == ["q"]


@pytest.mark.asyncio
async def test_function_tool_awaits_result_of_sync_wrapper():
    async def search(args):
        return args.limit

    tool = FunctionTool("search", "Search the index.", lambda args: search(args), SearchArgs)
    assert await tool.execute('{"query": "q", "limit": 7}') == 7
