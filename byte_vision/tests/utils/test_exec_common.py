# byte_vision/tests/utils/test_exec_common.py
import pytest

from byte_vision.exceptions import ContextCancelled, DeadlineExceeded, ProcessExitError
from byte_vision.utils.exec_common import map_exception_to_error_type


@pytest.mark.parametrize(
    "exc, expected",
    [
        (DeadlineExceeded(), "timeout"),
        (ContextCancelled(), "cancelled"),
        (FileNotFoundError("llama-cli"), "not_found"),
        (PermissionError("llama-cli"), "permission_denied"),
        (ProcessExitError(1, b"bad model"), "nonzero_exit"),
        (OSError("pipe closed"), "os_error"),
        (ValueError("odd"), "ValueError"),
    ],
)
def test_map_exception_to_error_type(exc, expected):
    assert map_exception_to_error_type(exc) == expected


def test_process_exit_error_keeps_stderr_tail():
    err = ProcessExitError(2, b"x" * 600 + b"\nfailed to load model\n")
    assert str(err) == "exit status 2"
    assert err.stderr_tail().endswith("failed to load model")
    assert len(err.stderr_tail(limit=20)) == 20
