"""
Kubernetes 리소스 모델
사이드카/init 컨테이너 레코드와 파드 템플릿 뷰
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from .errors import InitContainerAnnotationError, ManifestDecodeError

# 클러스터와 공유하는 어노테이션 키
SIDECAR_ANNOTATION_KEY = "alpha.istio.io/sidecar"
SIDECAR_ANNOTATION_VALUE = "injected"
VERSION_ANNOTATION_KEY = "alpha.istio.io/version"
INIT_CONTAINERS_ANNOTATION_KEY = "pod.beta.kubernetes.io/init-containers"

INIT_CONTAINER_NAME = "init"
PROXY_CONTAINER_NAME = "proxy"
CORE_DUMP_CONTAINER_NAME = "enable-core-dump"
CORE_DUMP_IMAGE = "alpine"

CERT_VOLUME_NAME = "istio-certs"
CERT_SECRET_PREFIX = "istio."
DEFAULT_SERVICE_ACCOUNT = "default"

PULL_ALWAYS = "Always"


@dataclass
class EnvVar:
    """환경 변수 (리터럴 값 또는 파드 필드 참조)"""
    name: str
    value: Optional[str] = None
    field_path: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"name": self.name}
        if self.field_path:
            data["valueFrom"] = {"fieldRef": {"fieldPath": self.field_path}}
        elif self.value is not None:
            data["value"] = self.value
        return data


@dataclass
class VolumeMount:
    """볼륨 마운트"""
    name: str
    mount_path: str
    read_only: bool = False

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"name": self.name, "mountPath": self.mount_path}
        if self.read_only:
            data["readOnly"] = True
        return data


@dataclass
class SecurityContext:
    """컨테이너 보안 컨텍스트"""
    run_as_user: Optional[int] = None
    privileged: Optional[bool] = None
    capabilities_add: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        if self.capabilities_add:
            data["capabilities"] = {"add": list(self.capabilities_add)}
        if self.privileged is not None:
            data["privileged"] = self.privileged
        if self.run_as_user is not None:
            data["runAsUser"] = self.run_as_user
        return data


@dataclass
class SecretVolume:
    """시크릿 기반 파드 볼륨"""
    name: str
    secret_name: str

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "secret": {"secretName": self.secret_name}}


@dataclass
class Container:
    """주입되는 컨테이너 레코드 (사이드카, init, 코어 덤프)"""
    name: str
    image: str = ""
    command: List[str] = field(default_factory=list)
    args: List[str] = field(default_factory=list)
    env: List[EnvVar] = field(default_factory=list)
    image_pull_policy: str = ""
    security_context: Optional[SecurityContext] = None
    volume_mounts: List[VolumeMount] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        if self.name:
            data["name"] = self.name
        if self.image:
            data["image"] = self.image
        if self.command:
            data["command"] = list(self.command)
        if self.args:
            data["args"] = list(self.args)
        if self.env:
            data["env"] = [env.to_dict() for env in self.env]
        if self.image_pull_policy:
            data["imagePullPolicy"] = self.image_pull_policy
        if self.security_context is not None:
            data["securityContext"] = self.security_context.to_dict()
        if self.volume_mounts:
            data["volumeMounts"] = [mount.to_dict() for mount in self.volume_mounts]
        return data


def decode_init_containers(value: Any) -> List[Any]:
    """init 컨테이너 어노테이션(JSON 배열) 디코딩

    기존 항목은 디코딩된 JSON 값 그대로 반환한다.
    다시 인코딩해도 값이 바뀌지 않도록 타입 레코드로 변환하지 않는다.
    """
    if value is None:
        return []
    if not isinstance(value, str):
        raise InitContainerAnnotationError(
            f"{INIT_CONTAINERS_ANNOTATION_KEY} annotation is not a string"
        )
    try:
        entries = json.loads(value)
    except ValueError as e:
        raise InitContainerAnnotationError(
            f"invalid {INIT_CONTAINERS_ANNOTATION_KEY} annotation: {e}"
        ) from e

    if entries is None:
        return []
    if not isinstance(entries, list):
        raise InitContainerAnnotationError(
            f"{INIT_CONTAINERS_ANNOTATION_KEY} annotation is not a JSON array"
        )
    return entries


def encode_init_containers(entries: List[Any]) -> str:
    """init 컨테이너 목록을 어노테이션 값으로 인코딩

    Container 레코드만 매핑으로 변환하고 기존 항목은 그대로 직렬화한다.
    """
    try:
        return json.dumps(
            [entry.to_dict() if isinstance(entry, Container) else entry for entry in entries],
            sort_keys=True,
            separators=(",", ":"),
        )
    except (TypeError, ValueError) as e:
        raise InitContainerAnnotationError(
            f"cannot encode {INIT_CONTAINERS_ANNOTATION_KEY} annotation: {e}"
        ) from e


class PodTemplate:
    """워크로드에 포함된 파드 템플릿 뷰

    원본 매핑을 소유하지 않고 참조만 하며, 모든 변경은 원본 문서에 그대로 반영된다.
    """

    def __init__(self, raw: Dict[str, Any]):
        self.raw = raw

    def _section(self, key: str) -> Dict[str, Any]:
        section = self.raw.get(key)
        if section is None:
            section = self.raw[key] = {}
        elif not isinstance(section, dict):
            raise ManifestDecodeError(f"pod template {key} is not a mapping")
        return section

    def _annotations(self) -> Dict[str, Any]:
        metadata = self._section("metadata")
        annotations = metadata.get("annotations")
        if annotations is None:
            annotations = metadata["annotations"] = {}
        elif not isinstance(annotations, dict):
            raise ManifestDecodeError("pod template annotations are not a mapping")
        return annotations

    @staticmethod
    def _mapping(data: Dict[str, Any], key: str, what: str) -> Dict[str, Any]:
        """읽기 전용 조회 (없으면 빈 매핑, 매핑이 아니면 오류)"""
        value = data.get(key)
        if value is None:
            return {}
        if not isinstance(value, dict):
            raise ManifestDecodeError(f"pod template {what} is not a mapping")
        return value

    @property
    def annotations(self) -> Dict[str, Any]:
        metadata = self._mapping(self.raw, "metadata", "metadata")
        return dict(self._mapping(metadata, "annotations", "annotations"))

    @property
    def containers(self) -> List[Dict[str, Any]]:
        return list(self._mapping(self.raw, "spec", "spec").get("containers") or [])

    @property
    def service_account_name(self) -> str:
        spec = self._mapping(self.raw, "spec", "spec")
        return spec.get("serviceAccountName") or DEFAULT_SERVICE_ACCOUNT

    def is_injected(self) -> bool:
        """사이드카 주입 마커 존재 여부"""
        return SIDECAR_ANNOTATION_KEY in self.annotations

    def set_annotation(self, key: str, value: str):
        self._annotations()[key] = value

    def init_containers(self) -> List[Any]:
        return decode_init_containers(self.annotations.get(INIT_CONTAINERS_ANNOTATION_KEY))

    def set_init_containers(self, entries: List[Any]):
        self.set_annotation(INIT_CONTAINERS_ANNOTATION_KEY, encode_init_containers(entries))

    def add_container(self, container: Container):
        spec = self._section("spec")
        if spec.get("containers") is None:
            spec["containers"] = []
        spec["containers"].append(container.to_dict())

    def add_volume(self, volume: SecretVolume):
        spec = self._section("spec")
        if spec.get("volumes") is None:
            spec["volumes"] = []
        spec["volumes"].append(volume.to_dict())
