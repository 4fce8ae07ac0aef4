"""
매니페스트 스트림 처리 모듈
'---' 로 구분된 YAML 문서 스트림을 문서 단위로 주입하여 다시 출력
"""

import io
import yaml
from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional, TextIO
from .config import Params
from .errors import ManifestDecodeError
from .kinds import inject_into_document, lookup_kind
from .logger import get_logger

SEPARATOR = "---"


@dataclass
class InjectionSummary:
    """스트림 처리 결과"""
    total: int = 0
    injected: int = 0
    skipped: int = 0


def is_separator(line: str) -> bool:
    """문서 구분선 여부 ('---' 뒤에 공백만 허용)"""
    return line.startswith(SEPARATOR) and not line[len(SEPARATOR):].strip()


def split_documents(lines: Iterable[str]) -> Iterator[str]:
    """입력 라인을 원본 문서 단위로 분리 (빈 문서는 건너뜀)"""
    buffer: List[str] = []
    for line in lines:
        if is_separator(line):
            if buffer:
                yield "".join(buffer)
                buffer = []
            continue
        buffer.append(line)

    if buffer:
        yield "".join(buffer)


def inject_document(params: Params, raw: str, index: int = 1) -> Optional[str]:
    """원본 문서 하나를 주입하여 다시 인코딩, 변경이 없으면 None"""
    try:
        doc = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ManifestDecodeError(f"document {index}: {e}") from e

    if not isinstance(doc, dict) or lookup_kind(doc.get("kind")) is None:
        kind = doc.get("kind") if isinstance(doc, dict) else None
        get_logger().debug(f"Document {index} (kind={kind}) passed through unchanged")
        return None

    if not inject_into_document(params, doc):
        return None

    return yaml.safe_dump(doc, default_flow_style=False, allow_unicode=True)


def into_resource_file(params: Params, in_stream: TextIO, out_stream: TextIO) -> InjectionSummary:
    """매니페스트 스트림 전체에 사이드카 주입

    모든 문서 뒤에 구분선을 쓴다. 오류가 발생하면 즉시 중단하고 예외를 그대로 전달한다.
    """
    logger = get_logger()
    summary = InjectionSummary()

    for raw in split_documents(in_stream):
        summary.total += 1
        updated = inject_document(params, raw, summary.total)

        if updated is None:
            summary.skipped += 1
            updated = raw if raw.endswith("\n") else raw + "\n"
        else:
            summary.injected += 1

        out_stream.write(updated)
        out_stream.write(SEPARATOR + "\n")

    logger.info(
        f"Processed {summary.total} document(s): "
        f"{summary.injected} injected, {summary.skipped} unchanged"
    )
    return summary


def inject_manifests(params: Params, text: str) -> str:
    """문자열 매니페스트에 사이드카 주입"""
    out = io.StringIO()
    into_resource_file(params, io.StringIO(text), out)
    return out.getvalue()
