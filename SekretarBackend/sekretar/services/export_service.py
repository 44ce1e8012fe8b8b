"""EDMS export codec: render a final draft as an import package.

Three fixed templates are supported, one per document-management system:
- 1C:Document Management consumes XML (``Communication`` envelope);
- Directum RX takes a JSON ``IOutgoingLetter`` over its REST integration;
- EOS "Delo" exchanges XML ``Card`` documents.

Anything else falls back to a plain-text file with the draft unmodified.
``serialize`` is pure apart from reading the clock, which can be injected.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Optional, Union
from xml.sax.saxutils import escape

from sekretar.schemas import ExportPackage
from sekretar.utils.text import format_ru_short_date


class EdmsFormat(str, Enum):
    ONEC = "1С:Документооборот"
    DIRECTUM = "Directum RX"
    DELO = 'СЭД "Дело"'


GENERATOR_NAME = "Секретарь 2.0"
GENERATOR_SOURCE = "Sekretar 2.0"
GENERATOR_VERSION = "1.0"
DEFAULT_SOURCE_NAME = "Входящий_документ"


def _cdata(text: str) -> str:
    # "]]>" cannot appear inside CDATA; split it across two sections
    return "<![CDATA[" + text.replace("]]>", "]]]]><![CDATA[>") + "]]>"


def _iso(ts: datetime) -> str:
    return ts.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _millis(ts: datetime) -> int:
    return int(ts.timestamp() * 1000)


def _onec(text: str, source_name: str, ts: datetime) -> ExportPackage:
    content = f"""<?xml version="1.0" encoding="UTF-8"?>
<Communication xmlns="http://www.1c.ru/docflow/integration">
  <Header>
    <Source>{GENERATOR_SOURCE}</Source>
    <Created>{_iso(ts)}</Created>
    <Type>OutgoingDocument</Type>
  </Header>
  <Document>
    <Title>Ответ на обращение (AI Draft)</Title>
    <Basis>{escape(source_name)}</Basis>
    <Description>Проект ответа, сгенерированный системой {GENERATOR_NAME}</Description>
    <Body>
{_cdata(chr(10) + text + chr(10))}
    </Body>
    <Status>Draft</Status>
    <Priority>Normal</Priority>
  </Document>
</Communication>"""
    return ExportPackage(filename=f"export_1c_{_millis(ts)}.xml", content=content, mime_type="application/xml")


def _directum(text: str, source_name: str, ts: datetime) -> ExportPackage:
    body = {
        "$type": "Sungero.Docflow.IOutgoingLetter, Sungero.Docflow.Interfaces",
        "Subject": "Ответ на обращение (Проект)",
        "Note": f"Сгенерировано в {GENERATOR_NAME}",
        "DocumentDate": _iso(ts),
        "BasisDocumentName": source_name,
        "Body": text,
        "LifeCycleState": "Draft",
        "Author": "AI Assistant",
    }
    return ExportPackage(
        filename=f"export_directum_{_millis(ts)}.json",
        content=json.dumps(body, ensure_ascii=False, indent=2),
        mime_type="application/json",
    )


def _delo(text: str, source_name: str, ts: datetime) -> ExportPackage:
    # RegDate is the registration date on the operator's local calendar
    content = f"""<?xml version="1.0" encoding="UTF-8"?>
<Card>
  <MainInfo>
    <CardKind>Проект исходящего</CardKind>
    <RegDate>{format_ru_short_date(ts.astimezone().date())}</RegDate>
    <Summary>Ответ на вх. документ {escape(source_name)}</Summary>
  </MainInfo>
  <Files>
    <File>
      <Description>Текст ответа</Description>
      <TextContent>{_cdata(text)}</TextContent>
    </File>
  </Files>
  <SystemInfo>
    <Generator>{GENERATOR_NAME}</Generator>
    <Version>{GENERATOR_VERSION}</Version>
  </SystemInfo>
</Card>"""
    return ExportPackage(filename=f"export_delo_{_millis(ts)}.xml", content=content, mime_type="application/xml")


_RENDERERS = {
    EdmsFormat.ONEC: _onec,
    EdmsFormat.DIRECTUM: _directum,
    EdmsFormat.DELO: _delo,
}


def parse_format(value: Union[str, EdmsFormat, None]) -> Optional[EdmsFormat]:
    """Resolve a format by value ("Directum RX") or by name ("DIRECTUM")."""
    if isinstance(value, EdmsFormat):
        return value
    if not value:
        return None
    try:
        return EdmsFormat(value)
    except ValueError:
        return EdmsFormat.__members__.get(str(value).upper())


def serialize(
    fmt: Union[str, EdmsFormat, None],
    response_text: str,
    originating_file_name: str = DEFAULT_SOURCE_NAME,
    clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
) -> ExportPackage:
    renderer = _RENDERERS.get(parse_format(fmt))
    if renderer is None:
        return ExportPackage(filename="export.txt", content=response_text, mime_type="text/plain")
    return renderer(response_text, originating_file_name, clock())
