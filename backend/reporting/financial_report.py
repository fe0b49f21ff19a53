"""Generate financial report PDFs from report statistics."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from io import BytesIO
from xml.sax.saxutils import escape

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.pdfgen.canvas import Canvas
from reportlab.platypus import Image, PageBreak, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from backend.reporting.formatting import format_brl, format_date_br, format_fixed, format_percent, format_ratio
from shared.models import CounterpartyStats, MaterialStats, ReportStats, Transaction
from shared.text_utils import material_label


_HEADER_BACKGROUND = colors.HexColor("#EEF1F4")
_GRID_COLOR = colors.HexColor("#D7DCE2")
_STRIPE_BACKGROUND = colors.HexColor("#FAFBFC")


@dataclass(slots=True)
class FinancialReportData:
    """Input payload for financial report rendering."""

    period_label: str
    stats: ReportStats
    transactions: list[Transaction]
    company_name: str = "IMPÉRIO SUCATA"
    transactions_limit: int = 250
    generated_at: datetime = field(default_factory=datetime.now)


def _autopct_threshold(pct: float) -> str:
    return f"{pct:.1f}%" if pct >= 3 else ""


def _summarize_materials(material_stats: dict[str, MaterialStats]) -> list[tuple[str, Decimal]]:
    """Return the eight materials with most money moved, the rest folded into one slice."""

    moved = [(key, stats.vendas + stats.compras) for key, stats in material_stats.items()]
    ordered = sorted((row for row in moved if row[1] > 0), key=lambda row: row[1], reverse=True)
    top_rows = [(material_label(key), amount) for key, amount in ordered[:8]]
    other_total = sum((amount for _, amount in ordered[8:]), Decimal("0"))
    if other_total > 0:
        top_rows.append(("Demais materiais", other_total))
    return top_rows


def _build_material_chart(material_stats: dict[str, MaterialStats]) -> bytes | None:
    rows = _summarize_materials(material_stats)
    if not rows:
        return None

    labels = [label for label, _ in rows]
    values = [float(amount) for _, amount in rows]

    fig, ax = plt.subplots(figsize=(6.2, 3.6), dpi=140)
    wedges, _, _ = ax.pie(
        values,
        labels=None,
        autopct=_autopct_threshold,
        startangle=90,
        wedgeprops={"width": 0.45, "edgecolor": "white"},
        pctdistance=0.78,
    )
    ax.legend(
        wedges,
        labels,
        title="Materiais",
        loc="center left",
        bbox_to_anchor=(1.0, 0.5),
        fontsize=8,
        frameon=False,
    )
    ax.set_title("Movimentação por material (compras + vendas)")
    ax.axis("equal")

    image_buffer = BytesIO()
    fig.savefig(image_buffer, format="png", bbox_inches="tight")
    plt.close(fig)
    image_buffer.seek(0)
    return image_buffer.read()


def _truncate_text(value: str, max_length: int = 28) -> str:
    if len(value) <= max_length:
        return value
    return value[: max_length - 1].rstrip() + "…"


class _FooterCanvas(Canvas):
    def __init__(self, *args, generated_on: str, company_name: str, **kwargs):
        super().__init__(*args, **kwargs)
        self._generated_on = generated_on
        self._company_name = company_name
        self._saved_page_states: list[dict] = []

    def showPage(self) -> None:  # noqa: N802 (ReportLab API)
        self._saved_page_states.append(dict(self.__dict__))
        self._startPage()

    def save(self) -> None:
        page_count = len(self._saved_page_states)
        for state in self._saved_page_states:
            self.__dict__.update(state)
            self._draw_footer(page_count=page_count)
            super().showPage()
        super().save()

    def _draw_footer(self, *, page_count: int) -> None:
        self.setFont("Helvetica", 8)
        self.setFillColor(colors.HexColor("#8A8F98"))
        self.drawString(16 * mm, 8 * mm, f"{self._company_name} | Gerado em {self._generated_on}")
        self.drawRightString(194 * mm, 8 * mm, f"Página {self._pageNumber} de {page_count}")


def _striped_table(table_data: list[list[object]], col_widths: list[float], extra_style: list[tuple]) -> Table:
    table = Table(table_data, colWidths=col_widths, repeatRows=1)
    table_style: list[tuple] = [
        ("BACKGROUND", (0, 0), (-1, 0), _HEADER_BACKGROUND),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, -1), 8),
        ("GRID", (0, 0), (-1, -1), 0.25, _GRID_COLOR),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
        ("TOPPADDING", (0, 0), (-1, -1), 3),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 3),
        *extra_style,
    ]
    for row_index in range(2, len(table_data), 2):
        table_style.append(("BACKGROUND", (0, row_index), (-1, row_index), _STRIPE_BACKGROUND))
    table.setStyle(TableStyle(table_style))
    return table


def _build_kpi_cards(stats: ReportStats) -> Table:
    styles = getSampleStyleSheet()
    card_style = ParagraphStyle(
        name="KpiCard",
        parent=styles["BodyText"],
        fontSize=10,
        leading=14,
        textColor=colors.HexColor("#1F2937"),
    )

    def _card(title: str, value: str) -> Paragraph:
        return Paragraph(f"<b>{title}</b><br/>{value}", card_style)

    metrics = stats.performance_metrics
    cells = [
        [
            _card("Total de vendas", f"{format_brl(stats.total_sales)} ({stats.sales_count})"),
            _card("Total de compras", f"{format_brl(stats.total_purchases)} ({stats.purchases_count})"),
            _card("Total de despesas", f"{format_brl(stats.total_expenses)} ({stats.expenses_count})"),
        ],
        [
            _card("Lucro (vendas - compras)", format_brl(stats.total_profit)),
            _card("Margem de lucro", format_percent(stats.profit_margin)),
            _card("Transações", str(stats.total_transactions)),
        ],
        [
            _card("Ticket médio de venda", format_brl(metrics.ticket_medio_venda)),
            _card("Ticket médio de compra", format_brl(metrics.ticket_medio_compra)),
            _card("Giro (vendas / compras)", f"{format_ratio(metrics.rotatividade_estoque)}x"),
        ],
    ]
    table = Table(cells, colWidths=[59 * mm, 59 * mm, 59 * mm])
    table.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (-1, -1), colors.HexColor("#F4F6F8")),
                ("BOX", (0, 0), (-1, -1), 0.6, colors.HexColor("#DDE2E8")),
                ("INNERGRID", (0, 0), (-1, -1), 0.4, colors.HexColor("#DDE2E8")),
                ("LEFTPADDING", (0, 0), (-1, -1), 8),
                ("RIGHTPADDING", (0, 0), (-1, -1), 8),
                ("TOPPADDING", (0, 0), (-1, -1), 8),
                ("BOTTOMPADDING", (0, 0), (-1, -1), 8),
            ]
        )
    )
    return table


def _build_materials_table(stats: ReportStats) -> Table:
    table_data: list[list[object]] = [["Material", "Qtd (kg)", "Vendas", "Compras", "Lucro", "Margem", "Trans."]]
    ordered = sorted(stats.material_stats.items(), key=lambda item: item[1].lucro, reverse=True)
    for key, material in ordered:
        table_data.append(
            [
                material_label(key),
                format_fixed(material.quantidade),
                format_brl(material.vendas),
                format_brl(material.compras),
                format_brl(material.lucro),
                format_percent(material.margem),
                str(material.transacoes),
            ]
        )
    return _striped_table(
        table_data,
        [36 * mm, 22 * mm, 28 * mm, 28 * mm, 28 * mm, 18 * mm, 14 * mm],
        [("ALIGN", (1, 1), (-1, -1), "RIGHT")],
    )


def _build_payments_table(stats: ReportStats) -> Table:
    table_data: list[list[object]] = [["Forma de pagamento", "Trans.", "Vendas", "Compras", "Total", "Participação"]]
    grand_total = sum((payment.total for payment in stats.payment_stats.values()), Decimal("0"))
    ordered = sorted(stats.payment_stats.items(), key=lambda item: item[1].total, reverse=True)
    for method, payment in ordered:
        share = payment.total / grand_total if grand_total > 0 else Decimal("0")
        table_data.append(
            [
                method.capitalize(),
                str(payment.count),
                format_brl(payment.sales),
                format_brl(payment.purchases),
                format_brl(payment.total),
                format_percent(share),
            ]
        )
    return _striped_table(
        table_data,
        [40 * mm, 16 * mm, 32 * mm, 32 * mm, 32 * mm, 22 * mm],
        [("ALIGN", (1, 1), (-1, -1), "RIGHT")],
    )


def _build_top_materials_table(stats: ReportStats) -> Table:
    table_data: list[list[object]] = [
        ["Material", "Qtd vendida", "Qtd comprada", "Preço médio venda", "Preço médio compra", "ROI"]
    ]
    for material in stats.top_materials:
        table_data.append(
            [
                material_label(material.material),
                format_fixed(material.quantidade_vendas),
                format_fixed(material.quantidade_compras),
                format_brl(material.preco_medio_venda),
                format_brl(material.preco_medio_compra),
                format_percent(material.roi),
            ]
        )
    return _striped_table(
        table_data,
        [36 * mm, 24 * mm, 24 * mm, 34 * mm, 34 * mm, 22 * mm],
        [("ALIGN", (1, 1), (-1, -1), "RIGHT")],
    )


def _build_counterparty_table(
    title: str, rows: list[tuple[str, CounterpartyStats, Decimal]], average_title: str
) -> Table:
    table_data: list[list[object]] = [[title, "Trans.", "Qtd (kg)", "Total", average_title]]
    for name, entry, average in rows:
        table_data.append(
            [
                _truncate_text(name, 40),
                str(entry.transacoes),
                format_fixed(entry.quantidade),
                format_brl(entry.total),
                format_brl(average),
            ]
        )
    return _striped_table(
        table_data,
        [62 * mm, 18 * mm, 26 * mm, 34 * mm, 34 * mm],
        [("ALIGN", (1, 1), (-1, -1), "RIGHT")],
    )


def _build_daily_table(stats: ReportStats) -> Table:
    table_data: list[list[object]] = [["Data", "Trans.", "Vendas", "Compras", "Despesas", "Lucro"]]
    for day in stats.daily_breakdown:
        table_data.append(
            [
                format_date_br(day.date),
                str(day.transactions),
                format_brl(day.sales),
                format_brl(day.purchases),
                format_brl(day.expenses),
                format_brl(day.profit),
            ]
        )
    return _striped_table(
        table_data,
        [26 * mm, 16 * mm, 33 * mm, 33 * mm, 33 * mm, 33 * mm],
        [("ALIGN", (1, 1), (-1, -1), "RIGHT")],
    )


def _build_transactions_table(data: FinancialReportData) -> Table:
    table_data: list[list[object]] = [
        ["Data", "Tipo", "Material", "Qtd (kg)", "Preço/kg", "Valor total", "Cliente/Fornecedor"]
    ]
    if not data.transactions:
        table_data.append(["-", "-", "Nenhuma transação", "-", "-", "-", "-"])
    for transaction in data.transactions[: data.transactions_limit]:
        table_data.append(
            [
                format_date_br(transaction.data) or "-",
                transaction.tipo.label,
                _truncate_text(material_label(transaction.material)),
                format_fixed(transaction.quantidade),
                format_brl(transaction.preco_unitario),
                format_brl(transaction.valor_total),
                _truncate_text(transaction.counterparty or "N/A"),
            ]
        )
    return _striped_table(
        table_data,
        [20 * mm, 17 * mm, 28 * mm, 20 * mm, 24 * mm, 28 * mm, 41 * mm],
        [("ALIGN", (3, 1), (5, -1), "RIGHT")],
    )


def generate_financial_report_pdf(data: FinancialReportData) -> bytes:
    """Render the summary page, breakdown tables and the transaction detail list."""

    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        rightMargin=16 * mm,
        leftMargin=16 * mm,
        topMargin=16 * mm,
        bottomMargin=14 * mm,
        title=f"Relatório financeiro - {data.company_name}",
    )
    styles = getSampleStyleSheet()
    section_title_style = ParagraphStyle(name="SectionTitle", parent=styles["Heading2"], spaceAfter=4, fontSize=12)
    subtitle_style = ParagraphStyle(name="Subtitle", parent=styles["BodyText"], fontSize=9, textColor=colors.HexColor("#6B7280"))
    generated_on = data.generated_at.strftime("%d/%m/%Y %H:%M")
    stats = data.stats

    story = [
        Paragraph(escape(data.company_name), styles["Title"]),
        Paragraph("Relatório financeiro", styles["Heading2"]),
        Spacer(1, 1 * mm),
        Paragraph(f"Período: {escape(data.period_label)}", styles["BodyText"]),
        Paragraph(f"Gerado em {generated_on}", subtitle_style),
        Spacer(1, 5 * mm),
        _build_kpi_cards(stats),
        Spacer(1, 6 * mm),
    ]

    if stats.total_transactions == 0:
        story.append(Paragraph("Nenhuma transação encontrada para os filtros selecionados.", styles["BodyText"]))
    else:
        chart_bytes = _build_material_chart(stats.material_stats)
        if chart_bytes is not None:
            story.append(Image(BytesIO(chart_bytes), width=166 * mm, height=92 * mm))
            story.append(Spacer(1, 3 * mm))

        story.append(Paragraph("Resultado por material", section_title_style))
        story.append(_build_materials_table(stats))
        if stats.top_materials:
            story.append(Spacer(1, 5 * mm))
            story.append(Paragraph("Preços médios e ROI dos materiais mais lucrativos", section_title_style))
            story.append(_build_top_materials_table(stats))
        story.append(Spacer(1, 5 * mm))
        story.append(Paragraph("Formas de pagamento", section_title_style))
        story.append(_build_payments_table(stats))

        if stats.top_clients:
            story.append(Spacer(1, 5 * mm))
            story.append(Paragraph("Principais clientes", section_title_style))
            story.append(
                _build_counterparty_table(
                    "Cliente",
                    [(client.nome, client, client.ticket_medio) for client in stats.top_clients],
                    "Ticket médio",
                )
            )
        if stats.top_suppliers:
            story.append(Spacer(1, 5 * mm))
            story.append(Paragraph("Principais fornecedores", section_title_style))
            story.append(
                _build_counterparty_table(
                    "Fornecedor",
                    [(supplier.nome, supplier, supplier.custo_medio) for supplier in stats.top_suppliers],
                    "Custo médio",
                )
            )

        if stats.daily_breakdown:
            story.append(Spacer(1, 5 * mm))
            story.append(Paragraph("Movimento diário", section_title_style))
            story.append(_build_daily_table(stats))

    story.append(PageBreak())
    story.append(Paragraph("Detalhe das transações", styles["Title"]))
    story.append(Spacer(1, 2 * mm))
    story.append(Paragraph(f"Período: {escape(data.period_label)}", styles["BodyText"]))
    story.append(Spacer(1, 4 * mm))
    if len(data.transactions) > data.transactions_limit:
        story.append(
            Paragraph(
                f"Lista limitada às {data.transactions_limit} transações mais recentes "
                f"de {len(data.transactions)}.",
                styles["Italic"],
            )
        )
        story.append(Spacer(1, 2 * mm))
    story.append(_build_transactions_table(data))

    doc.build(
        story,
        canvasmaker=lambda *args, **kwargs: _FooterCanvas(
            *args, generated_on=generated_on, company_name=data.company_name, **kwargs
        ),
    )
    buffer.seek(0)
    return buffer.read()
