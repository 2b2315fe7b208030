# byte_vision/tests/web/test_routes_mcp.py
"""
Tests for the MCP JSON-RPC endpoint and the health route.

The Python interpreter is configured as the llama-cli executable with `-c` as
the prompt flag, so a prompt is simply code whose output becomes the
completion.
"""
import sys

import pytest
from fastapi.testclient import TestClient

from byte_vision.schemas.llama_cli import LlamaCliConfig, ValueOption
from byte_vision.schemas.settings import AppSettings
from byte_vision.serve import create_app

ENDPOINT = "/mcp-completion"


def _app(**settings_overrides):
    values = dict(llama_cli_path=sys.executable, timeout_seconds=30)
    values.update(settings_overrides)
    settings = AppSettings(_env_file=None, **values)
    cli_config = LlamaCliConfig(prompt=ValueOption(flag="-c"))
    return create_app(settings, cli_config, file_logging=False)


@pytest.fixture
def client():
    # A fresh app per test: shutting one down cancels its root context.
    return TestClient(_app())


def _rpc(client, method, params=None, request_id=1):
    payload = {"jsonrpc": "2.0", "id": request_id, "method": method}
    if params is not None:
        payload["params"] = params
    response = client.post(ENDPOINT, json=payload)
    assert response.status_code == 200
    return response.json()


def _call(client, arguments):
    return _rpc(
        client, "tools/call", {"name": "generate_completion", "arguments": arguments}
    )


def test_initialize_reports_server_info(client):
    body = _rpc(client, "initialize", {"protocolVersion": "2024-11-05"})

    assert body["jsonrpc"] == "2.0"
    assert body["id"] == 1
    assert body["result"]["serverInfo"]["name"] == "byte-vision-mcp"
    assert "tools" in body["result"]["capabilities"]


def test_ping(client):
    assert _rpc(client, "ping", request_id="abc") == {
        "jsonrpc": "2.0",
        "id": "abc",
        "result": {},
    }


def test_tools_list_describes_generate_completion(client):
    tools = _rpc(client, "tools/list")["result"]["tools"]

    assert [tool["name"] for tool in tools] == ["generate_completion"]
    schema = tools[0]["inputSchema"]
    assert schema["required"] == ["prompt"]
    for name in (
        "prompt",
        "model",
        "threads",
        "gpu_layers",
        "ctx_size",
        "batch_size",
        "predict",
        "temperature",
        "top_k",
        "top_p",
        "repeat_penalty",
        "prompt_file",
        "log_file",
    ):
        assert name in schema["properties"]


def test_tools_call_returns_process_output(client):
    body = _call(client, {"prompt": "print('hello from llama')"})

    result = body["result"]
    assert result["isError"] is False
    assert result["content"] == [{"type": "text", "text": "hello from llama\n"}]


def test_tools_call_empty_prompt(client):
    result = _call(client, {"prompt": ""})["result"]
    assert result["isError"] is True
    assert result["content"][0]["text"] == "Error: Prompt cannot be empty"


def test_tools_call_missing_prompt_is_empty_prompt(client):
    result = _call(client, {})["result"]
    assert result["content"][0]["text"] == "Error: Prompt cannot be empty"


def test_tools_call_process_failure_is_tool_error(client):
    result = _call(client, {"prompt": "import sys; sys.exit(2)"})["result"]
    assert result["isError"] is True
    assert result["content"][0]["text"] == "Error generating completion: exit status 2"


def test_tools_call_timeout_is_tool_error():
    client = TestClient(_app(timeout_seconds=1))
    result = _call(client, {"prompt": "import time; time.sleep(30)"})["result"]
    assert result["isError"] is True
    assert result["content"][0]["text"] == "Error: Completion timed out after 1 seconds"


def test_tools_call_after_shutdown_is_cancelled():
    app = _app()
    client = TestClient(app)
    app.state.shutdown_context.cancel()

    result = _call(client, {"prompt": "print('late')"})["result"]

    assert result["content"][0]["text"] == "Error: Completion cancelled"


def test_tools_call_bad_argument_type(client):
    body = _call(client, {"prompt": "print(1)", "threads": "many"})
    assert body["error"]["code"] == -32602


def test_tools_call_unknown_tool(client):
    body = _rpc(client, "tools/call", {"name": "summarize", "arguments": {}})
    assert body["error"]["code"] == -32602
    assert "summarize" in body["error"]["message"]


def test_unknown_method(client):
    body = _rpc(client, "resources/list", request_id=7)
    assert body["id"] == 7
    assert body["error"]["code"] == -32601


def test_parse_error(client):
    response = client.post(
        ENDPOINT, content=b"{not json", headers={"content-type": "application/json"}
    )
    body = response.json()
    assert body["error"]["code"] == -32700
    assert body["id"] is None


def test_batch_request_rejected(client):
    response = client.post(ENDPOINT, json=[{"jsonrpc": "2.0", "id": 1, "method": "ping"}])
    assert response.json()["error"]["code"] == -32600


def test_invalid_request_keeps_id(client):
    response = client.post(ENDPOINT, json={"jsonrpc": "2.0", "id": 9})
    body = response.json()
    assert body["id"] == 9
    assert body["error"]["code"] == -32600


def test_wrong_jsonrpc_version(client):
    response = client.post(ENDPOINT, json={"jsonrpc": "1.0", "id": 1, "method": "ping"})
    assert response.json()["error"]["code"] == -32600


def test_notification_is_accepted_without_body(client):
    response = client.post(
        ENDPOINT, json={"jsonrpc": "2.0", "method": "notifications/initialized"}
    )
    assert response.status_code == 202
    assert response.content == b""


def test_custom_endpoint_path():
    client = TestClient(_app(end_point="/llm"))
    response = client.post("/llm", json={"jsonrpc": "2.0", "id": 1, "method": "ping"})
    assert response.json()["result"] == {}
    assert client.post(ENDPOINT, json={}).status_code == 404


def test_health_reports_metrics(client):
    _call(client, {"prompt": "print('x')"})
    _call(client, {"prompt": ""})

    body = client.get("/health").json()

    assert body["status"] == "ok"
    assert body["metrics"]["request_count"] == 2
    assert body["metrics"]["success_count"] == 1
    assert body["metrics"]["error_count"] == 1


def test_lifespan_shutdown_cancels_root_context():
    app = _app()
    with TestClient(app) as client:
        assert client.get("/health").json()["status"] == "ok"
        assert not app.state.shutdown_context.done
    assert app.state.shutdown_context.done


def test_lifespan_writes_log_file(tmp_path):
    settings = AppSettings(
        _env_file=None,
        llama_cli_path=sys.executable,
        app_log_path=str(tmp_path / "logs"),
        app_log_file_name="mcp.log",
    )
    app = create_app(settings, LlamaCliConfig(prompt=ValueOption(flag="-c")))

    with TestClient(app) as client:
        client.get("/health")

    log_text = (tmp_path / "logs" / "mcp.log").read_text(encoding="utf-8")
    assert "Logging initialized" in log_text
    assert "Application starting..." in log_text
