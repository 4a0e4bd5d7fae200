import io
import json
import sys
from pathlib import Path
from typing import Any, Callable

import pytest

# Ensure the package is importable without installation when running tests locally
pkg_src = Path(__file__).resolve().parents[1] / "src"
if str(pkg_src) not in sys.path:
    sys.path.insert(0, str(pkg_src))

class FakeUrlopen:
    """Stand-in for ``urllib.request.urlopen`` serving canned JSON by URL fragment."""

    def __init__(self, routes: dict[str, Any]) -> None:
        self.routes = routes
        self.requests: list[Any] = []

    def __call__(self, req: Any, timeout: float | None = None) -> io.BytesIO:
        self.requests.append(req)
        url = req.full_url if hasattr(req, "full_url") else str(req)
        for fragment, payload in self.routes.items():
            if fragment in url:
                if isinstance(payload, Exception):
                    raise payload
                body = payload if isinstance(payload, bytes) else json.dumps(payload).encode()
                return io.BytesIO(body)
        raise OSError(f"unexpected URL {url}")


@pytest.fixture()
def fake_http(monkeypatch: pytest.MonkeyPatch) -> Callable[[dict[str, Any]], FakeUrlopen]:
    def install(routes: dict[str, Any]) -> FakeUrlopen:
        fake = FakeUrlopen(routes)
        monkeypatch.setattr("yield_risk_lab.sources.http.urllib.request.urlopen", fake)
        return fake

    return install
