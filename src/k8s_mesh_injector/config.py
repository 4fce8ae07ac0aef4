"""
설정 관리 모듈
YAML/JSON 기반 설정 파일 관리 및 기본값 제공
"""

import os
import yaml
import json
from enum import Enum
from typing import Dict, Any, Optional
from dataclasses import dataclass, field, asdict
from .errors import ConfigError

# 프록시 주입 기본값
DEFAULT_SIDECAR_PROXY_UID = 1337
DEFAULT_VERBOSITY = 2
DEFAULT_PROXY_LISTEN_PORT = 15001
DEFAULT_AUTH_CERTS_PATH = "/etc/certs"
DEFAULT_HUB = "docker.io/istio"
DEFAULT_TAG = "0.1"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class AuthPolicy(Enum):
    """메시 인증 정책"""
    NONE = "NONE"
    MUTUAL_TLS = "MUTUAL_TLS"

    @classmethod
    def parse(cls, value: Any) -> "AuthPolicy":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).upper())
        except ValueError:
            raise ConfigError(f"unknown auth policy: {value!r}") from None


def init_image_name(hub: str, tag: str) -> str:
    """init 컨테이너 이미지 이름"""
    return f"{hub}/init:{tag}"


def proxy_image_name(hub: str, tag: str) -> str:
    """프록시 사이드카 이미지 이름"""
    return f"{hub}/proxy_debug:{tag}"


@dataclass
class MeshConfig:
    """메시 설정"""
    proxy_listen_port: int = DEFAULT_PROXY_LISTEN_PORT
    auth_policy: AuthPolicy = AuthPolicy.NONE
    auth_certs_path: str = DEFAULT_AUTH_CERTS_PATH


@dataclass
class ImageConfig:
    """이미지 설정 (init_image/proxy_image 를 지정하면 hub/tag 보다 우선)"""
    hub: str = DEFAULT_HUB
    tag: str = DEFAULT_TAG
    init_image: str = ""
    proxy_image: str = ""


@dataclass
class InjectorConfig:
    """주입기 설정"""
    verbosity: int = DEFAULT_VERBOSITY
    sidecar_proxy_uid: int = DEFAULT_SIDECAR_PROXY_UID
    version: str = ""
    enable_core_dump: bool = False
    mesh_config_map_name: str = ""
    include_ip_ranges: str = ""
    strict_health_ports: bool = False


@dataclass
class LoggingConfig:
    """로깅 설정"""
    log_dir: Optional[str] = None
    log_level: str = "INFO"


@dataclass(frozen=True)
class Params:
    """한 번의 주입 실행 동안 사용되는 불변 파라미터"""
    init_image: str
    proxy_image: str
    verbosity: int = DEFAULT_VERBOSITY
    sidecar_proxy_uid: int = DEFAULT_SIDECAR_PROXY_UID
    version: str = ""
    enable_core_dump: bool = False
    mesh: MeshConfig = field(default_factory=MeshConfig)
    mesh_config_map_name: str = ""
    # 쉼표로 구분된 CIDR 목록. 지정하면 해당 대역으로 가는 아웃바운드만 프록시로 리다이렉트
    include_ip_ranges: str = ""
    # True 면 해석할 수 없는 헬스체크 포트를 오류로 처리
    strict_health_ports: bool = False


def _as_int(section: str, key: str, value: Any) -> int:
    if isinstance(value, bool):
        raise ConfigError(f"{section}.{key} must be an integer, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{section}.{key} must be an integer, got {value!r}") from None


def _section_dict(section) -> Dict[str, Any]:
    return {
        key: value.value if isinstance(value, Enum) else value
        for key, value in asdict(section).items()
    }


class Config:
    """전체 설정 관리 클래스"""

    DEFAULT_CONFIG_PATHS = [
        "/etc/k8s-mesh-injector/config.yaml",
        "~/.k8s-mesh-injector/config.yaml",
        "./config.yaml",
    ]

    SECTIONS = ("mesh", "images", "injector", "logging")

    def __init__(self, config_path: Optional[str] = None):
        self.config_path = config_path
        self.mesh = MeshConfig()
        self.images = ImageConfig()
        self.injector = InjectorConfig()
        self.logging = LoggingConfig()

        if config_path:
            self.load(config_path)
        else:
            self._load_from_default_paths()

    def _load_from_default_paths(self):
        """기본 경로에서 설정 파일 로드"""
        for path in self.DEFAULT_CONFIG_PATHS:
            expanded_path = os.path.expanduser(path)
            if os.path.exists(expanded_path):
                self.load(expanded_path)
                return

    def load(self, path: str):
        """설정 파일 로드"""
        path = os.path.expanduser(path)
        if not os.path.exists(path):
            return

        with open(path, 'r', encoding='utf-8') as f:
            try:
                if path.endswith('.json'):
                    data = json.load(f)
                else:
                    data = yaml.safe_load(f) or {}
            except (ValueError, yaml.YAMLError) as e:
                raise ConfigError(f"cannot parse {path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"{path}: top level must be a mapping")

        self._update_from_dict(data)
        self.config_path = path

    def _update_from_dict(self, data: Dict[str, Any]):
        """딕셔너리에서 설정 업데이트"""
        for name in self.SECTIONS:
            values = data.get(name)
            if not values:
                continue
            if not isinstance(values, dict):
                raise ConfigError(f"{name} section must be a mapping")
            section = getattr(self, name)
            for key, value in values.items():
                if hasattr(section, key):
                    setattr(section, key, value)

        self.validate()

    def validate(self):
        """설정 값 검증 및 정규화"""
        self.mesh.auth_policy = AuthPolicy.parse(self.mesh.auth_policy)
        self.mesh.proxy_listen_port = _as_int("mesh", "proxy_listen_port", self.mesh.proxy_listen_port)
        self.injector.verbosity = _as_int("injector", "verbosity", self.injector.verbosity)
        self.injector.sidecar_proxy_uid = _as_int(
            "injector", "sidecar_proxy_uid", self.injector.sidecar_proxy_uid
        )

        if not 0 < self.mesh.proxy_listen_port < 65536:
            raise ConfigError(f"mesh.proxy_listen_port out of range: {self.mesh.proxy_listen_port}")

        self.logging.log_level = str(self.logging.log_level).upper()
        if self.logging.log_level not in LOG_LEVELS:
            raise ConfigError(f"unknown log level: {self.logging.log_level}")

    def to_params(self) -> Params:
        """주입 파라미터 생성"""
        self.validate()
        images = self.images
        return Params(
            init_image=images.init_image or init_image_name(images.hub, images.tag),
            proxy_image=images.proxy_image or proxy_image_name(images.hub, images.tag),
            verbosity=self.injector.verbosity,
            sidecar_proxy_uid=self.injector.sidecar_proxy_uid,
            version="" if self.injector.version is None else str(self.injector.version),
            enable_core_dump=bool(self.injector.enable_core_dump),
            mesh=MeshConfig(
                proxy_listen_port=self.mesh.proxy_listen_port,
                auth_policy=self.mesh.auth_policy,
                auth_certs_path=self.mesh.auth_certs_path,
            ),
            mesh_config_map_name=self.injector.mesh_config_map_name or "",
            include_ip_ranges=self.injector.include_ip_ranges or "",
            strict_health_ports=bool(self.injector.strict_health_ports),
        )

    def save(self, path: Optional[str] = None):
        """설정 파일 저장"""
        save_path = path or self.config_path or self.DEFAULT_CONFIG_PATHS[0]
        save_path = os.path.expanduser(save_path)

        directory = os.path.dirname(save_path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        data = self.to_dict()

        with open(save_path, 'w', encoding='utf-8') as f:
            if save_path.endswith('.json'):
                json.dump(data, f, indent=2)
            else:
                yaml.safe_dump(data, f, default_flow_style=False, allow_unicode=True)

    def to_dict(self) -> Dict[str, Any]:
        """딕셔너리로 변환"""
        return {name: _section_dict(getattr(self, name)) for name in self.SECTIONS}

    @staticmethod
    def create_sample(output_path: str):
        """샘플 설정 파일 생성"""
        template = """# K8s Mesh Injector Configuration File
# 이 파일을 복사하여 config.yaml로 사용하세요

# 메시 설정
mesh:
  proxy_listen_port: 15001  # 프록시가 리다이렉트된 트래픽을 받는 포트
  auth_policy: "NONE"  # NONE 또는 MUTUAL_TLS
  auth_certs_path: "/etc/certs"  # MUTUAL_TLS 사용 시 인증서 마운트 경로

# 이미지 설정
images:
  hub: "docker.io/istio"
  tag: "0.1"
  init_image: ""  # 비워두면 <hub>/init:<tag>
  proxy_image: ""  # 비워두면 <hub>/proxy_debug:<tag>

# 주입기 설정
injector:
  verbosity: 2  # 0이면 -v 인자 생략
  sidecar_proxy_uid: 1337
  version: ""  # alpha.istio.io/version 어노테이션 값
  enable_core_dump: false
  mesh_config_map_name: ""  # 지정 시 --meshConfig 인자 추가
  include_ip_ranges: ""  # 예: "10.0.0.0/8,172.16.0.0/12"
  strict_health_ports: false  # true면 헬스체크 포트 해석 실패 시 중단

# 로깅 설정
logging:
  log_dir: null  # 지정하면 파일 로그 생성
  log_level: "INFO"  # DEBUG, INFO, WARNING, ERROR
"""

        directory = os.path.dirname(output_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(output_path, 'w', encoding='utf-8') as f:
            f.write(template)
