"""
CLI 테스트
"""

import json
import yaml
from click.testing import CliRunner
from k8s_mesh_injector.cli import cli

DEPLOYMENT = """apiVersion: extensions/v1beta1
kind: Deployment
metadata:
  name: hello
spec:
  template:
    spec:
      containers:
        - name: hello
          image: hello:1
          livenessProbe:
            httpGet:
              port: 8080
"""


def _inject(runner, *args, manifest=DEPLOYMENT):
    with open("in.yaml", "w", encoding="utf-8") as f:
        f.write(manifest)
    result = runner.invoke(cli, ["inject", "-f", "in.yaml", "-o", "out.yaml", *args])
    return result


def _load_output() -> list:
    with open("out.yaml", encoding="utf-8") as f:
        return [doc for doc in yaml.safe_load_all(f) if doc is not None]


def test_inject_defaults():
    """기본 옵션 주입 테스트"""
    runner = CliRunner()
    with runner.isolated_filesystem():
        result = _inject(runner)
        assert result.exit_code == 0, result.output

        template = _load_output()[0]["spec"]["template"]
        proxy = template["spec"]["containers"][-1]
        assert proxy["image"] == "docker.io/istio/proxy_debug:0.1"
        assert proxy["args"] == ["proxy", "sidecar", "-v", "2", "--passthrough", "8080"]

        init = json.loads(template["metadata"]["annotations"]["pod.beta.kubernetes.io/init-containers"])
        assert init[0]["image"] == "docker.io/istio/init:0.1"


def test_inject_with_options():
    """명령행 옵션 주입 테스트"""
    runner = CliRunner()
    with runner.isolated_filesystem():
        result = _inject(
            runner,
            "--hub", "gcr.io/mesh", "--tag", "v2",
            "--verbosity", "0",
            "--sidecar-proxy-uid", "2000",
            "--mesh-version", "abc",
            "--core-dump",
            "--mesh-config-map", "istio",
            "--include-ip-ranges", "10.0.0.0/8",
            "--auth-policy", "mutual_tls",
        )
        assert result.exit_code == 0, result.output

        template = _load_output()[0]["spec"]["template"]
        annotations = template["metadata"]["annotations"]
        assert annotations["alpha.istio.io/version"] == "abc"

        init = json.loads(annotations["pod.beta.kubernetes.io/init-containers"])
        assert [c["name"] for c in init] == ["init", "enable-core-dump"]
        assert init[0]["image"] == "gcr.io/mesh/init:v2"
        assert init[0]["args"] == ["-p", "15001", "-u", "2000", "-i", "10.0.0.0/8"]

        proxy = template["spec"]["containers"][-1]
        assert proxy["image"] == "gcr.io/mesh/proxy_debug:v2"
        assert proxy["args"][:4] == ["proxy", "sidecar", "--meshConfig", "istio"]
        assert proxy["volumeMounts"][0]["mountPath"] == "/etc/certs"
        assert template["spec"]["volumes"][0]["secret"]["secretName"] == "istio.default"


def test_inject_with_config_file():
    """설정 파일 기반 주입 테스트"""
    runner = CliRunner()
    with runner.isolated_filesystem():
        with open("mesh.yaml", "w", encoding="utf-8") as f:
            f.write("mesh:\n  proxy_listen_port: 16001\nimages:\n  proxy_image: my/proxy:1\n")

        result = _inject(runner, "-c", "mesh.yaml", "--tag", "t")
        assert result.exit_code == 0, result.output

        template = _load_output()[0]["spec"]["template"]
        assert template["spec"]["containers"][-1]["image"] == "my/proxy:1"
        init = json.loads(template["metadata"]["annotations"]["pod.beta.kubernetes.io/init-containers"])
        assert init[0]["args"][:2] == ["-p", "16001"]
        assert init[0]["image"] == "docker.io/istio/init:t"


def test_inject_strict_health_ports_fails():
    """strict 헬스체크 포트 옵션 실패 테스트"""
    manifest = DEPLOYMENT.replace("port: 8080", "port: admin")
    runner = CliRunner()
    with runner.isolated_filesystem():
        result = _inject(runner, "--strict-health-ports", manifest=manifest)
        assert result.exit_code == 1

        result = _inject(runner, manifest=manifest)
        assert result.exit_code == 0


def test_inject_malformed_manifest():
    """잘못된 매니페스트 테스트"""
    runner = CliRunner()
    with runner.isolated_filesystem():
        result = _inject(runner, manifest="kind: Deployment\nspec: [oops\n")
        assert result.exit_code == 1


def test_init_creates_sample():
    """샘플 설정 파일 생성 테스트"""
    runner = CliRunner()
    with runner.isolated_filesystem():
        result = runner.invoke(cli, ["init", "conf/config.yaml"])
        assert result.exit_code == 0

        with open("conf/config.yaml", encoding="utf-8") as f:
            data = yaml.safe_load(f)
        assert data["mesh"]["proxy_listen_port"] == 15001


def test_validate_config():
    """설정 파일 유효성 검사 테스트"""
    runner = CliRunner()
    with runner.isolated_filesystem():
        with open("good.yaml", "w", encoding="utf-8") as f:
            f.write("mesh:\n  auth_policy: MUTUAL_TLS\n")
        with open("bad.yaml", "w", encoding="utf-8") as f:
            f.write("mesh:\n  auth_policy: MAYBE\n")

        assert runner.invoke(cli, ["validate", "-c", "good.yaml"]).exit_code == 0
        assert runner.invoke(cli, ["validate", "-c", "bad.yaml"]).exit_code == 1
