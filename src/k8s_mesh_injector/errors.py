"""
주입 오류 정의
스트림 디코딩, init 컨테이너 어노테이션, 헬스체크 포트 오류
"""

from typing import List


class InjectError(Exception):
    """주입 관련 오류의 기본 클래스"""


class ConfigError(InjectError):
    """설정 값 오류"""


class ManifestDecodeError(InjectError):
    """매니페스트 디코딩 오류"""


class InitContainerAnnotationError(InjectError):
    """init 컨테이너 어노테이션 디코딩/인코딩 오류"""


class ProbePortError(InjectError):
    """프로브 포트 해석 오류"""

    def __init__(self, container: str, probe: str, message: str):
        self.container = container
        self.probe = probe
        super().__init__(f"{probe} probe of container {container!r}: {message}")


class MissingNamedPortError(ProbePortError):
    """프로브가 참조하는 이름 있는 포트를 컨테이너에서 찾을 수 없음"""

    def __init__(self, container: str, probe: str, port: str):
        self.port = port
        super().__init__(container, probe, f"missing named port {port!r}")


class HealthPortError(InjectError):
    """헬스체크 포트 해석 오류 모음"""

    def __init__(self, errors: List[ProbePortError]):
        self.errors = list(errors)
        lines = "\n".join(f"  * {err}" for err in self.errors)
        super().__init__(f"{len(self.errors)} error(s) occurred:\n{lines}")
