"""
Ciclus RD - Spreadsheet export
Filtered report list to an .xlsx workbook, one row per RD
"""

from pathlib import Path
from typing import Iterable, List, Union

from loguru import logger
from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side

from ciclus_rd.backend.domain import Report
from ciclus_rd.shared.auth import AuthContext, require_permission
from ciclus_rd.shared.enums import Permission
from ciclus_rd.shared.errors import ValidationError
from ciclus_rd.shared.utils import clean_text, format_date_display, format_time_display

HEADER_FILL = PatternFill("solid", fgColor="D9EAD3")
TITLE_FILL = PatternFill("solid", fgColor="EAF4E6")
THIN = Side(border_style="thin", color="B0B0B0")
BORDER = Border(left=THIN, right=THIN, top=THIN, bottom=THIN)

HEADERS = [
    "ID", "Data", "Hora", "Supervisor", "Encarregado", "Base", "Turno", "Status",
    "Rua", "Bairro", "Perímetro",
    "Capinação (m)", "Pintura (m)", "Roçagem (m²)", "Postes (und)",
    "Homens (qtd)", "Observações", "Latitude", "Longitude",
    "Cap/Rasp m/homem", "Pintura Via m/homem", "Pintura de Poste nº/homem", "Roçagem (m²) / homem",
]


def report_row(report: Report) -> List:
    """Spreadsheet cells for one report; productivity is per man present (at least 1)"""
    present = report.present_count
    divisor = present or 1
    metrics = report.metrics
    return [
        report.id,
        format_date_display(report.date),
        format_time_display(report.date),
        report.supervisor_name or "",
        report.foreman_name,
        report.base.value if report.base else "",
        report.shift.value if report.shift else "",
        report.status.value,
        report.street,
        report.neighborhood,
        clean_text(report.perimeter),
        metrics.capina_m,
        metrics.pintura_vias_m,
        metrics.rocagem_m2,
        metrics.pintura_postes_und,
        present,
        clean_text(report.observations),
        report.location.lat if report.location else "",
        report.location.lng if report.location else "",
        round(metrics.capina_m / divisor, 2),
        round(metrics.pintura_vias_m / divisor, 2),
        round(metrics.pintura_postes_und / divisor, 2),
        round(metrics.rocagem_m2 / divisor, 2),
    ]


class ExportService:
    """Report exports (not available to foremen)"""

    @require_permission(Permission.REPORT_EXPORT)
    def export_reports_xlsx(self, auth: AuthContext, reports: Iterable[Report],
                            output_path: Union[str, Path], title: str = "") -> Path:
        reports = list(reports)
        if not reports:
            raise ValidationError("Nenhum dado para exportar com os filtros atuais.")

        wb = Workbook()
        ws = wb.active
        ws.title = "RDs"

        header_cols = len(HEADERS)
        ws.merge_cells(start_row=1, start_column=1, end_row=1, end_column=header_cols)
        title_cell = ws.cell(row=1, column=1, value=title or "Ciclus - Relatórios Diários de Produção")
        title_cell.font = Font(size=14, bold=True)
        title_cell.fill = TITLE_FILL
        title_cell.alignment = Alignment(vertical="center", horizontal="left")
        ws.row_dimensions[1].height = 28

        row = 3
        for col, header in enumerate(HEADERS, start=1):
            cell = ws.cell(row=row, column=col, value=header)
            cell.font = Font(bold=True)
            cell.fill = HEADER_FILL
            cell.alignment = Alignment(horizontal="center")
            cell.border = BORDER
        row += 1

        for report in reports:
            for col, value in enumerate(report_row(report), start=1):
                ws.cell(row=row, column=col, value=value).border = BORDER
            row += 1

        for col in range(1, header_cols + 1):
            ws.column_dimensions[ws.cell(row=3, column=col).column_letter].width = 16
        ws.freeze_panes = "A4"

        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        wb.save(output_path)

        logger.info(f"User {auth.name} exported {len(reports)} RDs to {output_path}")
        return output_path
