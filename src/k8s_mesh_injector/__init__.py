"""
K8s Mesh Injector
Kubernetes 워크로드 매니페스트에 서비스 메시 프록시 사이드카를 주입하는 도구

Features:
- Job/DaemonSet/ReplicaSet/Deployment/ReplicationController 지원
- 네트워크 설정 init 컨테이너 및 프록시 사이드카 주입
- idempotent 주입 (이미 주입된 템플릿은 그대로 유지)
- 헬스체크 포트 자동 탐지 및 passthrough 설정
- Mutual TLS 인증서 볼륨 마운트
"""

__version__ = "1.0.0"
__author__ = "DevOps Team"
