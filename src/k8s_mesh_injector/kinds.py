"""
워크로드 종류별 디스패치
리소스 kind 에 따라 내장 파드 템플릿 위치를 찾아 사이드카 주입을 위임
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional
from .config import Params
from .errors import ManifestDecodeError
from .logger import get_logger
from .models import PodTemplate
from .sidecar import inject_into_pod_template


@dataclass(frozen=True)
class WorkloadKind:
    """파드 템플릿을 포함하는 워크로드 종류"""
    kind: str
    template_path: tuple = ("spec", "template")
    # False 면 템플릿이 없을 때 주입하지 않음 (ReplicationController)
    template_required: bool = True

    def pod_template(self, doc: Dict[str, Any]) -> Optional[PodTemplate]:
        """문서에서 파드 템플릿 뷰 반환"""
        node = doc
        for depth, key in enumerate(self.template_path):
            child = node.get(key)
            if child is None:
                if not self.template_required:
                    return None
                child = node[key] = {}
            elif not isinstance(child, dict):
                path = ".".join(self.template_path[:depth + 1])
                raise ManifestDecodeError(f"{self.kind} {path} is not a mapping")
            node = child
        return PodTemplate(node)


WORKLOAD_KINDS: Dict[str, WorkloadKind] = {
    workload.kind: workload
    for workload in (
        WorkloadKind("Job"),
        WorkloadKind("DaemonSet"),
        WorkloadKind("ReplicaSet"),
        WorkloadKind("Deployment"),
        WorkloadKind("ReplicationController", template_required=False),
    )
}


def lookup_kind(kind: Any) -> Optional[WorkloadKind]:
    """주입 대상 kind 조회 (대상이 아니면 None)"""
    if not isinstance(kind, str):
        return None
    return WORKLOAD_KINDS.get(kind)


def inject_into_document(params: Params, doc: Dict[str, Any]) -> bool:
    """디코딩된 매니페스트 문서에 사이드카 주입, 변경되었으면 True"""
    logger = get_logger()

    workload = lookup_kind(doc.get("kind"))
    if workload is None:
        return False

    name = (doc.get("metadata") or {}).get("name", "?")
    template = workload.pod_template(doc)
    if template is None:
        logger.warning(f"{workload.kind}/{name} has no pod template, skipping")
        return False

    injected = inject_into_pod_template(params, template)
    if injected:
        logger.info(f"Injected sidecar into {workload.kind}/{name}")
    else:
        logger.info(f"{workload.kind}/{name} already injected")
    return injected
