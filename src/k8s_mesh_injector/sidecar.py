"""
사이드카 주입 모듈
파드 템플릿에 네트워크 설정 init 컨테이너와 프록시 사이드카를 추가
"""

from typing import List
from .config import AuthPolicy, Params
from .health import resolve_health_ports
from .logger import get_logger
from .models import (
    CERT_SECRET_PREFIX,
    CERT_VOLUME_NAME,
    CORE_DUMP_CONTAINER_NAME,
    CORE_DUMP_IMAGE,
    INIT_CONTAINER_NAME,
    PROXY_CONTAINER_NAME,
    PULL_ALWAYS,
    SIDECAR_ANNOTATION_KEY,
    SIDECAR_ANNOTATION_VALUE,
    VERSION_ANNOTATION_KEY,
    Container,
    EnvVar,
    PodTemplate,
    SecretVolume,
    SecurityContext,
    VolumeMount,
)

CORE_DUMP_COMMAND = "sysctl -w kernel.core_pattern=/tmp/core.%e.%p.%t && ulimit -c unlimited"

# 사이드카에 주입되는 파드 필드 참조 환경 변수
POD_FIELD_ENV = (
    ("POD_NAME", "metadata.name"),
    ("POD_NAMESPACE", "metadata.namespace"),
    ("POD_IP", "status.podIP"),
)


def init_container(params: Params) -> Container:
    """트래픽 리다이렉트 규칙을 설치하는 init 컨테이너"""
    args = [
        "-p", str(params.mesh.proxy_listen_port),
        "-u", str(params.sidecar_proxy_uid),
    ]
    if params.include_ip_ranges:
        args.extend(["-i", params.include_ip_ranges])

    return Container(
        name=INIT_CONTAINER_NAME,
        image=params.init_image,
        args=args,
        image_pull_policy=PULL_ALWAYS,
        security_context=SecurityContext(capabilities_add=["NET_ADMIN"]),
    )


def core_dump_container() -> Container:
    """코어 덤프를 활성화하는 특권 init 컨테이너"""
    return Container(
        name=CORE_DUMP_CONTAINER_NAME,
        image=CORE_DUMP_IMAGE,
        command=["/bin/sh"],
        args=["-c", CORE_DUMP_COMMAND],
        image_pull_policy=PULL_ALWAYS,
        security_context=SecurityContext(privileged=True),
    )


def sidecar_args(params: Params, ports: List[int]) -> List[str]:
    """프록시 사이드카 인자"""
    args = ["proxy", "sidecar"]
    if params.verbosity > 0:
        args.extend(["-v", str(params.verbosity)])
    if params.mesh_config_map_name:
        args.extend(["--meshConfig", params.mesh_config_map_name])
    for port in ports:
        args.extend(["--passthrough", str(port)])
    return args


def proxy_container(params: Params, ports: List[int], volume_mounts: List[VolumeMount]) -> Container:
    """프록시 사이드카 컨테이너"""
    return Container(
        name=PROXY_CONTAINER_NAME,
        image=params.proxy_image,
        args=sidecar_args(params, ports),
        env=[EnvVar(name, field_path=path) for name, path in POD_FIELD_ENV],
        image_pull_policy=PULL_ALWAYS,
        security_context=SecurityContext(run_as_user=params.sidecar_proxy_uid),
        volume_mounts=volume_mounts,
    )


def inject_into_pod_template(params: Params, template: PodTemplate) -> bool:
    """파드 템플릿에 사이드카 주입

    템플릿은 호출자의 문서를 직접 변경한다. 이미 주입된 템플릿이면 아무것도
    바꾸지 않고 False 를 반환한다. 오류가 발생하면 일부만 변경된 상태로 남는다.
    """
    logger = get_logger()

    if template.is_injected():
        logger.debug("Pod template already carries the sidecar annotation, skipping")
        return False

    template.set_annotation(SIDECAR_ANNOTATION_KEY, SIDECAR_ANNOTATION_VALUE)
    template.set_annotation(VERSION_ANNOTATION_KEY, params.version)

    # init 컨테이너 (기존 항목 유지, 뒤에 추가)
    init_containers = template.init_containers()
    init_containers.append(init_container(params))
    if params.enable_core_dump:
        init_containers.append(core_dump_container())
    template.set_init_containers(init_containers)

    ports, error = resolve_health_ports(template)
    if error is not None:
        if params.strict_health_ports:
            raise error
        logger.warning(f"Some health check ports could not be resolved: {error}")
    logger.debug(f"Health check passthrough ports: {ports}")

    volume_mounts = []
    if params.mesh.auth_policy is AuthPolicy.MUTUAL_TLS:
        volume_mounts.append(VolumeMount(
            name=CERT_VOLUME_NAME,
            mount_path=params.mesh.auth_certs_path,
            read_only=True,
        ))
        template.add_volume(SecretVolume(
            name=CERT_VOLUME_NAME,
            secret_name=CERT_SECRET_PREFIX + template.service_account_name,
        ))

    template.add_container(proxy_container(params, ports, volume_mounts))
    return True
