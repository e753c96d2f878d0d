"""
Árbol en memoria de un documento de exportación.

Los valores se guardan sin escapar; el escape XML se aplica al serializar.
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class ExportPeriod(BaseModel):
    start: Optional[str] = None
    end: Optional[str] = None


class ExportSubject(BaseModel):
    name: str
    email: str = ""
    id: int


class ExportHeader(BaseModel):
    title: str
    exported_at: str
    total_count: int = 0
    period: ExportPeriod = Field(default_factory=ExportPeriod)
    subject: ExportSubject


class ExportWeek(BaseModel):
    start: str
    end: str
    label: str
    # Cada elemento es un mapeo ordenado etiqueta -> texto o sub-mapeo
    items: List[Dict[str, Any]] = Field(default_factory=list)


class ExportDocument(BaseModel):
    kind: str
    root_tag: str
    header: ExportHeader
    weeks: List[ExportWeek] = Field(default_factory=list)

    @property
    def item_count(self) -> int:
        return sum(len(week.items) for week in self.weeks)
