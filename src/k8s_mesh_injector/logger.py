"""
로깅 시스템
콘솔(stderr) 및 선택적 파일 로깅, 디버그 모드 지원
"""

import logging
import os
from datetime import datetime
from typing import Optional
from rich.logging import RichHandler
from rich.console import Console

# 표준 출력은 매니페스트 출력에 사용하므로 콘솔은 stderr 로 보낸다
console = Console(stderr=True)


class InjectorLogger:
    """주입기 로거"""

    def __init__(self, log_dir: Optional[str] = None, log_level: str = "INFO", debug: bool = False):
        self.log_dir = log_dir
        self.log_level = logging.DEBUG if debug else getattr(logging, log_level.upper())
        self.log_file = None
        self.error_file = None

        # 로거 설정
        self.logger = logging.getLogger("k8s_mesh_injector")
        self.logger.setLevel(self.log_level)

        # 기존 핸들러 제거
        for handler in list(self.logger.handlers):
            self.logger.removeHandler(handler)
            handler.close()

        if log_dir:
            os.makedirs(log_dir, exist_ok=True)

            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            self.log_file = os.path.join(log_dir, f"injector_{timestamp}.log")
            self.error_file = os.path.join(log_dir, f"error_{timestamp}.log")

            # 파일 핸들러
            file_handler = logging.FileHandler(self.log_file, encoding='utf-8')
            file_handler.setLevel(self.log_level)
            file_formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            file_handler.setFormatter(file_formatter)
            self.logger.addHandler(file_handler)

            # 에러 파일 핸들러
            error_handler = logging.FileHandler(self.error_file, encoding='utf-8')
            error_handler.setLevel(logging.ERROR)
            error_handler.setFormatter(file_formatter)
            self.logger.addHandler(error_handler)

        # 콘솔 핸들러 (Rich)
        rich_handler = RichHandler(
            console=console,
            rich_tracebacks=True,
            show_time=False,
            show_path=debug
        )
        rich_handler.setLevel(self.log_level)
        self.logger.addHandler(rich_handler)

    def debug(self, message: str):
        """디버그 로그"""
        self.logger.debug(message)

    def info(self, message: str):
        """정보 로그"""
        self.logger.info(message)

    def warning(self, message: str):
        """경고 로그"""
        self.logger.warning(message)

    def error(self, message: str):
        """에러 로그"""
        self.logger.error(message)


# 글로벌 로거 인스턴스
_logger: Optional[InjectorLogger] = None


def get_logger(log_dir: Optional[str] = None,
               log_level: str = "INFO",
               debug: bool = False) -> InjectorLogger:
    """로거 인스턴스 가져오기"""
    global _logger
    if _logger is None:
        _logger = InjectorLogger(log_dir, log_level, debug)
    return _logger


def init_logger(log_dir: Optional[str], log_level: str, debug: bool) -> InjectorLogger:
    """로거 초기화"""
    global _logger
    _logger = InjectorLogger(log_dir, log_level, debug)
    return _logger
