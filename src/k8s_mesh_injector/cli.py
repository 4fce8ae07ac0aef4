"""
CLI 메인 인터페이스
Click 및 Rich 기반 사용자 친화적 CLI
"""

import sys
import click
from rich.table import Table
from . import __version__
from .config import AuthPolicy, Config
from .errors import InjectError
from .logger import console, init_logger
from .stream import into_resource_file


@click.group()
@click.version_option(version=__version__)
def cli():
    """K8s Mesh Injector

    Kubernetes 워크로드 매니페스트에 서비스 메시 프록시 사이드카를 주입합니다.
    """
    pass


@cli.command()
@click.option('--filename', '-f', type=click.File('r'), default='-', help='입력 매니페스트 (기본값: stdin)')
@click.option('--output', '-o', type=click.File('w'), default='-', help='출력 매니페스트 (기본값: stdout)')
@click.option('--config', '-c', type=click.Path(exists=True), help='설정 파일 경로')
@click.option('--hub', help='이미지 허브')
@click.option('--tag', help='이미지 태그')
@click.option('--init-image', help='init 컨테이너 이미지 (hub/tag 보다 우선)')
@click.option('--proxy-image', help='프록시 이미지 (hub/tag 보다 우선)')
@click.option('--verbosity', type=int, help='프록시 로그 상세도')
@click.option('--sidecar-proxy-uid', type=int, help='프록시 실행 UID')
@click.option('--mesh-version', help='alpha.istio.io/version 어노테이션 값')
@click.option('--core-dump/--no-core-dump', default=None, help='코어 덤프 init 컨테이너 추가')
@click.option('--mesh-config-map', help='메시 설정 ConfigMap 이름')
@click.option('--include-ip-ranges', help='프록시로 리다이렉트할 CIDR 목록 (쉼표 구분)')
@click.option('--auth-policy', type=click.Choice([p.value for p in AuthPolicy], case_sensitive=False),
              help='메시 인증 정책')
@click.option('--strict-health-ports', is_flag=True, default=None, help='헬스체크 포트 해석 실패 시 중단')
@click.option('--debug', is_flag=True, help='디버그 모드')
def inject(filename, output, config, hub, tag, init_image, proxy_image, verbosity,
           sidecar_proxy_uid, mesh_version, core_dump, mesh_config_map,
           include_ip_ranges, auth_policy, strict_health_ports, debug):
    """매니페스트에 프록시 사이드카 주입"""
    try:
        cfg = Config(config)
    except InjectError as e:
        console.print(f"[red]✗ 설정 파일 오류: {e}[/red]")
        sys.exit(1)

    # 명령행 옵션이 설정 파일보다 우선
    overrides = (
        (cfg.images, "hub", hub),
        (cfg.images, "tag", tag),
        (cfg.images, "init_image", init_image),
        (cfg.images, "proxy_image", proxy_image),
        (cfg.injector, "verbosity", verbosity),
        (cfg.injector, "sidecar_proxy_uid", sidecar_proxy_uid),
        (cfg.injector, "version", mesh_version),
        (cfg.injector, "enable_core_dump", core_dump),
        (cfg.injector, "mesh_config_map_name", mesh_config_map),
        (cfg.injector, "include_ip_ranges", include_ip_ranges),
        (cfg.injector, "strict_health_ports", strict_health_ports),
        (cfg.mesh, "auth_policy", auth_policy),
    )
    for section, key, value in overrides:
        if value is not None:
            setattr(section, key, value)

    logger = init_logger(cfg.logging.log_dir, cfg.logging.log_level, debug)
    logger.debug(f"Starting inject command (config={cfg.config_path}, debug={debug})")

    try:
        params = cfg.to_params()
        summary = into_resource_file(params, filename, output)
    except InjectError as e:
        logger.error(f"Injection failed: {e}")
        console.print(f"[red]✗ 주입 실패: {e}[/red]")
        sys.exit(1)

    logger.debug(f"Injection finished: {summary}")


@cli.command()
@click.argument('output', type=click.Path(), default='./config.yaml')
def init(output):
    """샘플 설정 파일 생성"""
    Config.create_sample(output)
    console.print(f"[green]✓ 샘플 설정 파일 생성: {output}[/green]")
    console.print("[cyan]설정 파일을 편집한 후 다음 명령어로 실행하세요:[/cyan]")
    console.print(f"[cyan]  k8s-mesh-injector inject --config {output} -f deployment.yaml[/cyan]")


@cli.command()
@click.option('--config', '-c', type=click.Path(exists=True), help='설정 파일 경로')
def validate(config):
    """설정 파일 유효성 검사"""
    try:
        cfg = Config(config)
        params = cfg.to_params()
    except InjectError as e:
        console.print(f"[red]✗ 설정 파일 오류: {e}[/red]")
        sys.exit(1)

    console.print("[green]✓ 설정 파일이 유효합니다.[/green]")

    # 설정 내용 표시
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("항목", style="cyan")
    table.add_column("값")

    table.add_row("설정 파일", cfg.config_path or "[yellow]기본값[/yellow]")
    table.add_row("init 이미지", params.init_image)
    table.add_row("프록시 이미지", params.proxy_image)
    table.add_row("프록시 포트", str(params.mesh.proxy_listen_port))
    table.add_row("인증 정책", params.mesh.auth_policy.value)
    table.add_row("프록시 UID", str(params.sidecar_proxy_uid))
    table.add_row("상세도", str(params.verbosity))
    table.add_row("코어 덤프", "예" if params.enable_core_dump else "아니오")
    table.add_row("IP 대역", params.include_ip_ranges or "[yellow]전체[/yellow]")

    console.print(table)


def main():
    """메인 엔트리 포인트"""
    cli()


if __name__ == '__main__':
    main()
