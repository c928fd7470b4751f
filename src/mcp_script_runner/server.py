"""MCP server implementation."""
import asyncio
import json
from pathlib import Path
from typing import Any, Dict, List

import mcp.types as types
from mcp.server.lowlevel import Server
from mcp.server.models import InitializationOptions
from mcp.server import stdio

from mcp_script_runner.constants import (
    DEFAULT_ENVIRONMENT_NAME,
    DEFAULT_LANGUAGE_VERSION,
    DEFAULT_MAX_RETRIES,
    DEFAULT_MODEL_NAME,
    DEFAULT_TEMPERATURE,
)
from mcp_script_runner.errors import ScriptRunnerError
from mcp_script_runner.logging import configure_logging, get_logger
from mcp_script_runner.orchestrator import run_script, run_script_persistent
from mcp_script_runner.types import InvocationRequest

logger = get_logger("server")

SERVER_NAME = "mcp-script-runner"
SERVER_VERSION = "0.1.0"

REQUEST_SCHEMA = {
    "type": "object",
    "properties": {
        "input_message": {"type": "string", "description": "Free-text input passed to the script"},
        "script_path": {"type": "string", "description": "Path of the Python script to run"},
        "language_version": {
            "type": "string",
            "description": "Python version for the environment",
            "default": DEFAULT_LANGUAGE_VERSION,
        },
        "environment_name": {
            "type": "string",
            "description": "Micromamba environment name",
            "default": DEFAULT_ENVIRONMENT_NAME,
        },
        "root_prefix": {
            "type": "string",
            "description": "Micromamba root prefix (defaults to the user data dir)",
        },
        "extra_packages": {
            "type": "array",
            "items": {"type": "string"},
            "description": "Packages to pip install into the environment",
        },
        "dotenv_path": {"type": "string", "description": "Dotenv file passed to the script's environment"},
        "temperature": {"type": "number", "default": DEFAULT_TEMPERATURE},
        "model_name": {"type": "string", "default": DEFAULT_MODEL_NAME},
        "max_retries": {"type": "integer", "minimum": 0, "default": DEFAULT_MAX_RETRIES},
    },
    "required": ["input_message", "script_path"],
}

tools = [
    types.Tool(
        name="run_script",
        description=(
            "Provision a micromamba environment, run a Python script in it "
            "and remove the environment afterwards"
        ),
        inputSchema=REQUEST_SCHEMA,
    ),
    types.Tool(
        name="run_script_persistent",
        description="Run a Python script in an existing micromamba environment, if present",
        inputSchema=REQUEST_SCHEMA,
    ),
]


def request_from_arguments(arguments: Dict[str, Any]) -> InvocationRequest:
    """Build an InvocationRequest from tool arguments, applying defaults."""
    root_prefix = arguments.get("root_prefix")
    dotenv_path = arguments.get("dotenv_path")
    return InvocationRequest(
        input_message=arguments["input_message"],
        script_path=arguments["script_path"],
        environment_name=arguments.get("environment_name", DEFAULT_ENVIRONMENT_NAME),
        language_version=arguments.get("language_version", DEFAULT_LANGUAGE_VERSION),
        root_prefix=Path(root_prefix) if root_prefix else None,
        extra_packages=list(arguments.get("extra_packages") or []),
        temperature=float(arguments.get("temperature", DEFAULT_TEMPERATURE)),
        model_name=arguments.get("model_name", DEFAULT_MODEL_NAME),
        max_retries=int(arguments.get("max_retries", DEFAULT_MAX_RETRIES)),
        dotenv_path=Path(dotenv_path) if dotenv_path else None,
    )


def _text(payload: Dict[str, Any]) -> list[types.TextContent]:
    return [types.TextContent(type="text", text=json.dumps(payload))]


async def handle_call_tool(name: str, arguments: Dict[str, Any]) -> list[types.TextContent]:
    """Dispatch a tool call and wrap the outcome in the success/error envelope."""
    try:
        logger.debug(f"Tool call received: {name} with arguments {arguments}")

        if name == "run_script":
            result = await run_script(request_from_arguments(arguments))
            return _text({"success": True, "data": {"result": result}})

        elif name == "run_script_persistent":
            result = await run_script_persistent(request_from_arguments(arguments))
            if result is None:
                return _text({
                    "success": True,
                    "data": {"result": None, "message": "Environment not found, nothing was run"}
                })
            return _text({"success": True, "data": {"result": result}})

        return _text({"success": False, "error": f"Unknown tool: {name}"})

    except KeyError as e:
        return _text({"success": False, "error": f"Missing required argument: {e.args[0]}"})
    except ScriptRunnerError as e:
        return _text({"success": False, "error": str(e), "details": e.details})
    except Exception as e:
        return _text({"success": False, "error": str(e)})


async def init_server() -> Server:
    logger.info(f"Registered tools: {', '.join(t.name for t in tools)}")

    server = Server(SERVER_NAME)

    @server.list_tools()
    async def list_tools() -> List[types.Tool]:
        logger.debug("Tools requested")
        return tools

    @server.call_tool()
    async def call_tool(
        name: str, arguments: Dict[str, Any]
    ) -> list[types.TextContent | types.ImageContent | types.EmbeddedResource]:
        return await handle_call_tool(name, arguments)

    return server


async def serve() -> None:
    configure_logging()
    logger.info("Starting MCP script runner server")
    server = await init_server()
    async with stdio.stdio_server() as (read_stream, write_stream):
        init_options = InitializationOptions(
            server_name=SERVER_NAME,
            server_version=SERVER_VERSION,
            capabilities=types.ServerCapabilities(
                tools=types.ToolsCapability(listChanged=False),
                logging=types.LoggingCapability(),
            ),
        )
        await server.run(read_stream, write_stream, init_options)


def main() -> None:
    """Run the MCP server."""
    asyncio.run(serve())
