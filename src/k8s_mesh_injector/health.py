"""
헬스체크 포트 탐지 모듈
liveness/readiness HTTP 프로브가 사용하는 포트를 찾아 프록시 passthrough 대상으로 사용
"""

from typing import Any, Dict, List, Optional, Tuple
from .errors import HealthPortError, MissingNamedPortError, ProbePortError
from .models import PodTemplate

PROBES = (
    ("liveness", "livenessProbe"),
    ("readiness", "readinessProbe"),
)


def resolve_port(container: Dict[str, Any], port: Any, probe: str = "liveness") -> int:
    """프로브 포트 해석

    정수는 그대로 사용하고, 문자열은 같은 컨테이너의 ports 목록에서 이름으로 찾는다.
    """
    name = container.get("name", "")

    if isinstance(port, bool):
        raise ProbePortError(name, probe, f"incorrect port type {port!r}")
    if isinstance(port, int):
        return port
    if isinstance(port, str):
        for named in container.get("ports") or []:
            if named.get("name") == port:
                return int(named.get("containerPort", 0))
        raise MissingNamedPortError(name, probe, port)

    raise ProbePortError(name, probe, f"incorrect port type {port!r}")


def resolve_health_ports(template: PodTemplate) -> Tuple[List[int], Optional[HealthPortError]]:
    """파드 템플릿의 헬스체크 포트 목록 (오름차순, 중복 없음)과 해석 오류 반환

    해석할 수 없는 프로브가 있어도 나머지 프로브는 계속 처리한다.
    """
    ports = set()
    errors: List[ProbePortError] = []

    for container in template.containers:
        for probe, key in PROBES:
            http_get = (container.get(key) or {}).get("httpGet")
            if http_get is None:
                continue
            try:
                if not isinstance(http_get, dict):
                    raise ProbePortError(container.get("name", ""), probe, "httpGet is not a mapping")
                ports.add(resolve_port(container, http_get.get("port", 0), probe))
            except ProbePortError as e:
                errors.append(e)

    return sorted(ports), (HealthPortError(errors) if errors else None)
