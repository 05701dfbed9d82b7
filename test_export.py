import pytest
from openpyxl import load_workbook

from ciclus_rd.backend.domain import ProductionMetrics
from ciclus_rd.backend.services import ExportService
from ciclus_rd.backend.services.export_service import HEADERS, report_row
from ciclus_rd.shared.errors import ValidationError


def test_report_row_productivity_per_present_man(make_report):
    report = make_report(metrics=ProductionMetrics(capina_m=2100, rocagem_m2=1000, pintura_vias_m=10,
                                                   pintura_postes_und=500))
    row = dict(zip(HEADERS, report_row(report)))
    assert row["Homens (qtd)"] == 1
    assert row["Cap/Rasp m/homem"] == 2100
    assert row["Roçagem (m²) / homem"] == 1000
    assert row["Data"] == "10/05/2024"
    assert row["Hora"] == "08:30"


def test_report_row_without_attendance_divides_by_one(make_report):
    row = dict(zip(HEADERS, report_row(make_report(team_attendance=[], observations="linha 1\nlinha; 2"))))
    assert row["Homens (qtd)"] == 0
    assert row["Cap/Rasp m/homem"] == 100
    assert row["Observações"] == "linha 1 linha, 2"


def test_export_writes_workbook(tmp_path, make_report, supervisor):
    output = ExportService().export_reports_xlsx(
        supervisor, [make_report(id="RD-A"), make_report(id="RD-B")], tmp_path / "out" / "rds.xlsx",
    )
    ws = load_workbook(output).active
    assert [c.value for c in ws[3]] == HEADERS
    assert ws["A4"].value == "RD-A"
    assert ws["A5"].value == "RD-B"
    assert ws.freeze_panes == "A4"


def test_empty_export_is_refused(tmp_path, supervisor):
    with pytest.raises(ValidationError):
        ExportService().export_reports_xlsx(supervisor, [], tmp_path / "rds.xlsx")


def test_foreman_cannot_export(tmp_path, make_report, foreman):
    with pytest.raises(PermissionError):
        ExportService().export_reports_xlsx(foreman, [make_report()], tmp_path / "rds.xlsx")
