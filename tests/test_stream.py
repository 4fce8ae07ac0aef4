"""
매니페스트 스트림 처리 모듈 테스트
"""

import io
import json
import pytest
import yaml
from k8s_mesh_injector.config import Params
from k8s_mesh_injector.errors import InitContainerAnnotationError, ManifestDecodeError
from k8s_mesh_injector.models import INIT_CONTAINERS_ANNOTATION_KEY
from k8s_mesh_injector.stream import (
    into_resource_file,
    inject_manifests,
    split_documents,
)

PARAMS = Params(
    init_image="docker.io/istio/init:0.1",
    proxy_image="docker.io/istio/proxy_debug:0.1",
    version="12345678",
)

HELLO = """apiVersion: extensions/v1beta1
kind: Deployment
metadata:
  name: hello-{version}
spec:
  replicas: 7
  template:
    metadata:
      labels:
        app: hello
        tier: backend
        track: stable
        version: {version}
    spec:
      containers:
        - name: hello
          image: "fake.docker.io/google-samples/hello-go-gke:1.0"
          ports:
            - name: http
              containerPort: 80
"""

SERVICE = """# service comment
apiVersion: v1
kind: Service
metadata:
  name: hello
spec:
  ports:   [{port: 80}]
"""


def _docs(output: str) -> list:
    return [doc for doc in yaml.safe_load_all(output) if doc is not None]


def test_split_documents():
    """문서 분리 테스트"""
    text = "---\na: 1\n---\n---  \nb: 2\n--- \n---not-a-separator: 3\n"
    assert list(split_documents(io.StringIO(text))) == [
        "a: 1\n",
        "b: 2\n",
        "---not-a-separator: 3\n",
    ]


def test_split_documents_without_trailing_newline():
    """마지막 줄바꿈이 없는 입력 분리 테스트"""
    assert list(split_documents(io.StringIO("a: 1\n---\nb: 2"))) == ["a: 1\n", "b: 2"]


def test_unknown_kind_passthrough():
    """대상이 아닌 문서는 원본 그대로 출력하는지 테스트"""
    output = inject_manifests(PARAMS, SERVICE)
    assert output == SERVICE + "---\n"


def test_missing_trailing_newline_before_separator():
    """줄바꿈 없는 문서 뒤에도 구분선이 별도 줄에 오는지 테스트"""
    output = inject_manifests(PARAMS, "kind: ConfigMap")
    assert output == "kind: ConfigMap\n---\n"


def test_end_to_end_two_deployments():
    """두 개의 Deployment 주입 테스트"""
    text = HELLO.format(version="v1") + "---\n" + HELLO.format(version="v2")
    out = io.StringIO()
    summary = into_resource_file(PARAMS, io.StringIO(text), out)

    assert summary.total == 2
    assert summary.injected == 2
    assert summary.skipped == 0

    output = out.getvalue()
    assert output.endswith("---\n")

    docs = _docs(output)
    assert [d["metadata"]["name"] for d in docs] == ["hello-v1", "hello-v2"]

    for doc in docs:
        template = doc["spec"]["template"]
        annotations = template["metadata"]["annotations"]
        assert annotations["alpha.istio.io/sidecar"] == "injected"
        assert annotations["alpha.istio.io/version"] == "12345678"

        init_containers = json.loads(annotations[INIT_CONTAINERS_ANNOTATION_KEY])
        assert len(init_containers) == 1
        assert init_containers[0]["name"] == "init"
        assert init_containers[0]["args"] == ["-p", "15001", "-u", "1337"]

        containers = template["spec"]["containers"]
        assert [c["name"] for c in containers] == ["hello", "proxy"]
        proxy = containers[1]
        assert proxy["args"] == ["proxy", "sidecar", "-v", "2"]
        assert [e["name"] for e in proxy["env"]] == ["POD_NAME", "POD_NAMESPACE", "POD_IP"]
        assert proxy["securityContext"]["runAsUser"] == 1337

        # 기존 필드 유지
        assert doc["spec"]["replicas"] == 7
        assert template["metadata"]["labels"]["tier"] == "backend"


def test_mixed_stream_preserves_order_and_count():
    """문서 순서 및 개수 유지 테스트"""
    text = SERVICE + "---\n" + HELLO.format(version="v1") + "---\n" + SERVICE
    output = inject_manifests(PARAMS, text)

    assert output.count("---\n") == 3
    assert output.startswith(SERVICE + "---\n")
    assert output.endswith("---\n" + SERVICE + "---\n")
    assert [d["kind"] for d in _docs(output)] == ["Service", "Deployment", "Service"]


def test_injection_twice_is_identical():
    """두 번 주입한 결과가 한 번 주입한 결과와 같은지 테스트"""
    text = HELLO.format(version="v1") + "---\n" + SERVICE + "---\n" + HELLO.format(version="v2")
    once = inject_manifests(PARAMS, text)
    twice = inject_manifests(PARAMS, once)
    assert twice == once


def test_already_injected_document_passthrough():
    """이미 주입된 문서는 원본 그대로 출력하는지 테스트"""
    text = """kind: Job
metadata:
  name: batch
spec:
  template:
    metadata:
      annotations:
        alpha.istio.io/sidecar: injected
    spec:
      containers: [{name: job, image: "job:1"}]
"""
    out = io.StringIO()
    summary = into_resource_file(PARAMS, io.StringIO(text), out)

    assert out.getvalue() == text + "---\n"
    assert summary.skipped == 1


def test_empty_stream():
    """빈 입력 테스트"""
    assert inject_manifests(PARAMS, "") == ""
    assert inject_manifests(PARAMS, "---\n---\n") == ""


def test_malformed_yaml_aborts():
    """잘못된 YAML 은 전체 처리를 중단하는지 테스트"""
    text = HELLO.format(version="v1") + "---\nkind: Deployment\nmetadata: [unclosed\n"
    out = io.StringIO()

    with pytest.raises(ManifestDecodeError) as exc_info:
        into_resource_file(PARAMS, io.StringIO(text), out)

    assert "document 2" in str(exc_info.value)


def test_malformed_init_annotation_aborts():
    """init 컨테이너 어노테이션 오류로 중단되는지 테스트"""
    text = """kind: DaemonSet
metadata:
  name: agent
spec:
  template:
    metadata:
      annotations:
        pod.beta.kubernetes.io/init-containers: "not json"
    spec:
      containers: [{name: agent, image: "agent:1"}]
"""
    with pytest.raises(InitContainerAnnotationError) as exc_info:
        inject_manifests(PARAMS, text)

    assert "init-containers" in str(exc_info.value)


def test_non_string_init_annotation_aborts():
    """문자열이 아닌 init 컨테이너 어노테이션 테스트"""
    text = """kind: Deployment
metadata:
  name: hello
spec:
  template:
    metadata:
      annotations:
        pod.beta.kubernetes.io/init-containers: [1]
    spec:
      containers: [{name: hello, image: "hello:1"}]
"""
    with pytest.raises(InitContainerAnnotationError) as exc_info:
        inject_manifests(PARAMS, text)

    assert "not a string" in str(exc_info.value)
