"""
Global test configuration and fixtures
"""

import time
from collections.abc import Callable, Iterable
from typing import Any

import pytest

from contract_graph.application.service import DependencyGraphService
from contract_graph.infrastructure.result_cache import ResultCache

# 느린 테스트 임계값 (초)
SLOW_TEST_THRESHOLD = 5.0

InterfaceFactory = Callable[..., dict[str, Any]]


@pytest.fixture(autouse=True)
def track_test_duration(request):
    """느린 테스트 경고"""
    start_time = time.time()

    yield

    duration = time.time() - start_time
    if duration > SLOW_TEST_THRESHOLD:
        print(f"\n⚠️  SLOW TEST ({duration:.2f}s): {request.node.nodeid}")


@pytest.fixture
def make_interface() -> InterfaceFactory:
    """Interface description builder"""

    def _make(
        contract_id: str,
        imports: Iterable[str] = (),
        clients: Iterable[str] = (),
        interfaces: Iterable[str] = (),
        name: str | None = None,
    ) -> dict[str, Any]:
        description: dict[str, Any] = {
            "contract_id": contract_id,
            "imports": [{"contract_id": c} for c in imports],
            "clients": [{"contract_id": c} for c in clients],
            "interfaces": [{"contract_id": c} for c in interfaces],
        }
        if name is not None:
            description["name"] = name
        return description

    return _make


@pytest.fixture
def service() -> DependencyGraphService:
    """In-memory service with the result cache enabled"""
    return DependencyGraphService(cache=ResultCache(max_entries=1000))


@pytest.fixture
def abc_service(service, make_interface) -> DependencyGraphService:
    """A (no deps) <- B (client of A) <- C (client of B)"""
    service.publish("A", "1", make_interface("A")).raise_for_error()
    service.publish("B", "1", make_interface("B", clients=["A"])).raise_for_error()
    service.publish("C", "1", make_interface("C", clients=["B"])).raise_for_error()
    return service


# Pytest hooks
def pytest_configure(config):
    """pytest 설정"""
    config.addinivalue_line("markers", "unit: Unit tests (fast, isolated)")
    config.addinivalue_line("markers", "integration: Integration tests (medium speed)")
    config.addinivalue_line("markers", "slow: Slow tests (>5s)")


def pytest_collection_modifyitems(config, items):
    """경로 기반 자동 마커 추가"""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
