"""
Per-request logging context: the request id and the storage adapter the
request resolved to.
"""
import contextvars
from contextlib import contextmanager
from typing import Dict, Iterator, Optional

request_id_var = contextvars.ContextVar("request_id", default=None)
adapter_var = contextvars.ContextVar("adapter", default=None)

CONTEXT_VARS = {
    "request_id": request_id_var,
    "adapter": adapter_var,
}


def set_request_context(request_id: Optional[str] = None, adapter: Optional[str] = None) -> None:
    if request_id is not None:
        request_id_var.set(request_id)
    if adapter is not None:
        adapter_var.set(adapter)


def get_request_context() -> Dict[str, Optional[str]]:
    return {name: var.get() for name, var in CONTEXT_VARS.items()}


@contextmanager
def request_context(request_id: str) -> Iterator[None]:
    """Bind `request_id` for the duration of one request, starting with no adapter."""
    request_token = request_id_var.set(request_id)
    adapter_token = adapter_var.set(None)
    try:
        yield
    finally:
        adapter_var.reset(adapter_token)
        request_id_var.reset(request_token)
