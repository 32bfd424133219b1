import csv
import logging
from dataclasses import dataclass
from datetime import date, datetime, time
from io import StringIO
from typing import Any, Iterable, Sequence

from sqlalchemy.orm import Session

from kontify.models.advisor import Advisor
from kontify.models.lead import Lead, LeadSource, LeadStatus

logger = logging.getLogger(__name__)

CSV_BOM = "\ufeff"
EXPORT_COLUMNS = [
    "ID_Consulta",
    "Cliente",
    "Email",
    "Fecha_Creacion",
    "Estado",
    "Origen",
    "Asesor_Asignado",
    "Consulta",
]


@dataclass
class LeadFilters:
    status: LeadStatus | None = None
    source: LeadSource | None = None
    asesor_id: int | None = None
    start_date: date | None = None
    end_date: date | None = None

    def matches(self, lead: Any) -> bool:
        if self.start_date and lead.created_at < datetime.combine(self.start_date, time.min):
            return False
        # The end date covers the whole day.
        if self.end_date and lead.created_at > datetime.combine(self.end_date, time.max):
            return False
        if self.status is not None and lead.status != self.status:
            return False
        if self.source is not None and lead.source != self.source:
            return False
        if self.asesor_id is not None and lead.asesor_id != self.asesor_id:
            return False
        return True


def filter_leads(leads: Iterable[Any], filters: LeadFilters) -> list[Any]:
    return [lead for lead in leads if filters.matches(lead)]


def export_rows(leads: Iterable[Any], advisors: Iterable[Any]) -> list[dict[str, Any]]:
    names = {a.id: a.name for a in advisors}
    return [
        {
            "ID_Consulta": lead.id,
            "Cliente": lead.name,
            "Email": lead.email,
            "Fecha_Creacion": lead.created_at.strftime("%Y-%m-%d %H:%M:%S"),
            "Estado": lead.status.value,
            "Origen": lead.source.value,
            "Asesor_Asignado": names.get(lead.asesor_id, "N/A"),
            "Consulta": lead.query_details,
        }
        for lead in leads
    ]


def rows_to_csv(rows: Sequence[dict[str, Any]], fieldnames: Sequence[str] | None = None) -> bytes:
    """UTF-8 CSV with a byte-order mark so spreadsheets pick the right encoding.

    The header comes from the keys of the first row unless ``fieldnames`` is given.
    """
    if fieldnames is None:
        fieldnames = list(rows[0].keys()) if rows else []
    out = StringIO()
    out.write(CSV_BOM)
    if fieldnames:
        writer = csv.DictWriter(out, fieldnames=list(fieldnames), lineterminator="\n", quoting=csv.QUOTE_MINIMAL)
        writer.writeheader()
        for row in rows:
            writer.writerow({k: "" if row.get(k) is None else row.get(k) for k in fieldnames})
    return out.getvalue().encode("utf-8")


def parse_csv(data: bytes) -> list[dict[str, str]]:
    return list(csv.DictReader(StringIO(data.decode("utf-8-sig"), newline="")))


def export_filename(today: date | None = None) -> str:
    return f"reporte_consultas_{(today or date.today()).isoformat()}.csv"


def leads_csv(db: Session, filters: LeadFilters) -> bytes:
    leads = db.query(Lead).order_by(Lead.created_at.desc(), Lead.id.desc()).all()
    selected = filter_leads(leads, filters)
    advisors = db.query(Advisor).all()
    logger.info("exporting %d of %d leads", len(selected), len(leads))
    return rows_to_csv(export_rows(selected, advisors), fieldnames=EXPORT_COLUMNS)
